"""TaskPilot planner service."""
