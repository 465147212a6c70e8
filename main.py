"""
main.py — development launcher for the RoomAlloc API.

    python main.py

Serves the app object from app.py with auto-reload; the OpenAPI explorer is at
/docs. Business logic lives under the roomalloc package.

Equivalent uvicorn command:
    uvicorn app:app --reload
"""

from __future__ import annotations

import uvicorn


HOST = "127.0.0.1"
PORT = 8000


def main() -> None:
    """Print the local URLs and hand over to uvicorn."""
    print("=" * 60)
    print("  RoomAlloc: rooms, attendees and allocations")
    print("=" * 60)
    print(f"  API     : http://{HOST}:{PORT}")
    print(f"  Explorer: http://{HOST}:{PORT}/docs")
    print("=" * 60)
    print("  CTRL+C stops the server\n")

    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
