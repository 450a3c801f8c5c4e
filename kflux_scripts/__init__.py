"""
kflux-scripts
Synthetic Kubernetes resource generators and release automation helpers
"""

__version__ = "0.3.0"
