"""
Client configuration.
"""

CLIENT_CONFIG = {
    "port": 4000,
    "url": "ws://localhost:4000/ws",
    "max_attempts": 5,
    "initial_delay": 1.0,  # seconds
    "max_delay": 10.0,  # seconds
    "commit_prune_delay": 1.0,  # how long committed edits stay visible
}


def server_url(port: int) -> str:
    return f"ws://localhost:{port}/ws"
