#!/usr/bin/env python3
"""
Start every configured cluster node on this machine.

Usage:
    python start_cluster.py [--stagger SECONDS]

One uvicorn process per node from CLUSTER_NODES (default: the three local
nodes on ports 5001-5003). Ctrl+C stops all of them.
"""

import argparse
import logging
import os
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Tuple

from core.config import ClusterSettings
from core.constants import ENV_PORT, ENV_SERVER_ID
from core.logging_config import configure_logging
from models.node import Node

logger = logging.getLogger(__name__)

SRC_DIR = Path(__file__).parent


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Start all hospital cluster nodes")
    parser.add_argument(
        "--stagger",
        "-s",
        type=float,
        default=1.0,
        help="Seconds to wait between node starts (default: 1.0)",
    )
    return parser.parse_args()


def start_node(node: Node) -> subprocess.Popen:
    """Spawn one node process with its id and port in the environment."""
    env = dict(os.environ)
    env[ENV_SERVER_ID] = str(node.id)
    env[ENV_PORT] = str(node.port)
    logger.info(f"Starting node {node.id} ({node.display_name}) on port {node.port}")
    return subprocess.Popen([sys.executable, str(SRC_DIR / "main.py")], env=env, cwd=SRC_DIR)


def stop_nodes(processes: List[Tuple[Node, subprocess.Popen]], timeout: float = 10.0) -> None:
    """Ask every node to shut down, killing the ones that do not exit in time."""
    for _, process in processes:
        if process.poll() is None:
            process.send_signal(signal.SIGTERM)

    for node, process in processes:
        try:
            process.wait(timeout=timeout)
            logger.info(f"Node {node.id} stopped")
        except subprocess.TimeoutExpired:
            logger.warning(f"Node {node.id} did not stop in {timeout}s, killing it")
            process.kill()


def main() -> None:
    configure_logging("INFO")
    args = parse_arguments()
    settings = ClusterSettings.from_environment()

    processes = []
    try:
        for node in settings.nodes:
            processes.append((node, start_node(node)))
            time.sleep(args.stagger)

        logger.info("All nodes started:")
        for node in settings.nodes:
            logger.info(f"   - Node {node.id}: {node.base_url}")
        logger.info("Press Ctrl+C to stop all nodes")

        while True:
            for node, process in processes:
                if process.poll() is not None:
                    logger.warning(f"Node {node.id} exited with code {process.returncode}")
            processes = [(node, process) for node, process in processes if process.poll() is None]
            if not processes:
                break
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Shutting down all nodes...")
    finally:
        stop_nodes(processes)


if __name__ == "__main__":
    main()
