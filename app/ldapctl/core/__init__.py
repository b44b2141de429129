"""Convergence engine: resolve, plan and apply."""
