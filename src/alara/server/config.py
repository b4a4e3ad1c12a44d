"""
Configuration for the dev server.
"""

# === Server Configuration ===
SERVER_CONFIG = {
    "host": "127.0.0.1",  # Localhost only
    "port": 4000,
    "ws_path": "/ws",
    "health_path": "/health",
    "heartbeat": 30.0,  # Seconds between websocket protocol pings
    "banner": "Alara Dev Server",
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# === File Watcher Configuration ===
WATCHER_CONFIG = {
    "enabled": True,
    "recursive": True,
    "watch_patterns": ["*.tsx", "*.ts", "*.jsx", "*.js", "*.css"],
    "ignore_patterns": [
        "node_modules/*",
        ".git/*",
        ".alara/*",
        "dist/*",
        "build/*",
        "*.tmp",
    ],
}
