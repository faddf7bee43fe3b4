"""Local bridge exposing a Slack workspace to tool-calling agents."""
