# Plan Relay - WebSocket relay between a browser extension and an LLM planner
# Turns natural-language commands into structured browser-automation plans

__version__ = "0.1.0"
