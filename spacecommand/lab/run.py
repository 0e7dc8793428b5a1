"""Launch script for the SpaceCommand combat lab."""

import argparse

import uvicorn


def main():
    """Start the lab server."""
    ap = argparse.ArgumentParser(prog="python -m spacecommand.lab.run")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--reload", action="store_true")
    args = ap.parse_args()

    print("=" * 70)
    print("SpaceCommand Combat Lab")
    print("=" * 70)
    print(f"\nOpen http://{args.host}:{args.port}/docs in your browser")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 70 + "\n")

    uvicorn.run(
        "spacecommand.lab.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info"
    )


if __name__ == "__main__":
    main()
