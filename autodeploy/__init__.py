"""
autodeploy - describe a deployment in plain words, get Terraform that runs it.

The package analyzes a repository, combines the result with requirements
extracted from a free-text description, decides on an infrastructure shape,
renders Terraform configuration and optionally drives terraform to apply it.
"""

__version__ = "0.1.0"
