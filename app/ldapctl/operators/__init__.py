"""Operators that check and change host state.

This module provides package operators for different package managers
(APT, DNF) and the filesystem operator.
"""

from ldapctl.operators.apt import AptOperator
from ldapctl.operators.base import PackageOperator
from ldapctl.operators.dnf import DnfOperator
from ldapctl.operators.files import FileOperator

__all__ = ["AptOperator", "DnfOperator", "FileOperator", "PackageOperator"]
