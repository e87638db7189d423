"""kubecascade -- dependency analysis and cascading-deletion decisions for Kubernetes resources."""

__version__ = "0.1.0"
