"""Start the Spotify MCP server and the music agent backend.

Both run as child processes of this script; Ctrl+C stops them together.
"""
import subprocess
import sys
import time
from pathlib import Path


def start_server_process(name, module, cwd):
    """Start `python -m <module>` as a child process"""
    print(f"Starting {name}...")
    return subprocess.Popen([sys.executable, "-m", module], cwd=str(cwd))


def main():
    base_dir = Path(__file__).parent

    print("=" * 70)
    print("Spotify Music Agent - Starting All Servers")
    print("=" * 70)
    print()

    processes = []

    # Start MCP Server
    processes.append(start_server_process(
        "Spotify MCP Server (port 3002)",
        "spotify_mcp_server.main",
        cwd=base_dir,
    ))
    time.sleep(2)

    # Start Backend
    processes.append(start_server_process(
        "Music Agent Backend (port 4000)",
        "music_agent.main",
        cwd=base_dir,
    ))

    print()
    print("=" * 70)
    print("All servers started!")
    print("=" * 70)
    print()
    print("Services running:")
    print("  - Spotify MCP Server:  http://localhost:3002/mcp")
    print("  - Music Agent Backend: http://localhost:4000")
    print()
    print("Press Ctrl+C to stop all servers")
    print("=" * 70)

    try:
        for process in processes:
            process.wait()
    except KeyboardInterrupt:
        print("\nStopping servers...")
        for process in processes:
            process.terminate()
        for process in processes:
            process.wait()


if __name__ == "__main__":
    main()
