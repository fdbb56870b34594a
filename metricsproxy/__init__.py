"""
Metrics Proxy - aggregiert Metrics-Endpoints mehrerer Upstreams zu einer Antwort
"""

__version__ = "1.0.0"
