"""Logging and metrics for kubecascade."""
