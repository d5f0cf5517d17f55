"""Executable stand-in for the ``cassandra`` launcher script.

``write_fake_launcher`` produces a script that reads ``$CASSANDRA_CONF/cassandra.yaml``,
listens on the configured client port and exits cleanly on SIGTERM.
"""
from __future__ import annotations

import stat
import sys
from pathlib import Path

_SCRIPT = '''#!{python}
import os
import signal
import socket
import sys

import yaml

if "-f" not in sys.argv[1:]:
    sys.exit("expected foreground flag -f")

with open(os.path.join(os.environ["CASSANDRA_CONF"], "cassandra.yaml"), encoding="utf-8") as f:
    conf = yaml.safe_load(f)

signal.signal(signal.SIGTERM, lambda *_: sys.exit(0))

srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
srv.bind((conf.get("rpc_address") or "127.0.0.1", int(conf["rpc_port"])))
srv.listen(16)
while True:
    conn, _ = srv.accept()
    conn.close()
'''


def write_fake_launcher(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "cassandra"
    path.write_text(_SCRIPT.format(python=sys.executable), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path
