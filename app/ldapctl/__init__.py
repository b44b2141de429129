"""ldapctl - Declarative LDAP client configuration for Linux hosts."""

__version__ = "0.1.0"
