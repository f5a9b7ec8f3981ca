"""Technology detection for application checkouts."""
from autodeploy.discovery.stack_detector import StackDetector

__all__ = ['StackDetector']
