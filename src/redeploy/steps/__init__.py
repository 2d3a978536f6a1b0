"""Build and deploy step implementations."""

from redeploy.steps.base import Builder, Deployer
from redeploy.steps.registry import StepRegistry, get_builder, get_deployer, list_steps

__all__ = ["Builder", "Deployer", "StepRegistry", "get_builder", "get_deployer", "list_steps"]
