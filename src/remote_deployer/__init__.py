"""
Remote Deployer

Provisions a single remote host over SSH and deploys a containerized
application from a Git repository behind an Nginx reverse proxy.
"""

__version__ = "0.1.0"
__author__ = "Remote Deployer Team"
__description__ = "Single-host Docker deployment over SSH with Nginx reverse proxy"
