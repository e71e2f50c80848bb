"""dcos_checks — DC/OS node health checks (`checks` CLI)."""

__version__ = "0.1.0"
