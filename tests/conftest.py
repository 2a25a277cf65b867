import json
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    from deploy.config import reset_config

    for key in ("DEPLOY_SERVERS_FILE", "DEPLOY_KNOWN_HOSTS_POLICY", "DEPLOY_CONNECTION_TIMEOUT", "DEPLOY_DEBUG"):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def server_list_data():
    return {
        "servers": [
            {
                "name": "testserver",
                "envs": [
                    {
                        "name": "prod",
                        "server": "example.com:22",
                        "user": "deployer",
                        "pass": "secret",
                        "dir": "/srv/app",
                        "command": "./restart.sh",
                    }
                ],
            }
        ]
    }


@pytest.fixture
def servers_file(tmp_path: Path, server_list_data):
    p = tmp_path / "servers.json"
    p.write_text(json.dumps(server_list_data), encoding="utf-8")
    return p


class FakeChannel:
    """Delivers output as ordered ("stdout" | "stderr", bytes) chunks.

    Only the chunk at the head of the queue is readable, so a reader that
    ignores one stream never sees the data queued behind it.
    """

    def __init__(self, stdout=b"", stderr=b"", exit_code=0, exec_error=None, chunks=None):
        self.stdout = stdout
        self.stderr = stderr
        self.chunks = chunks
        self.exit_code = exit_code
        self.exec_error = exec_error
        self.command = None
        self.closed = False
        self.reads = []
        self._pending = []

    def exec_command(self, command):
        if self.exec_error is not None:
            raise self.exec_error
        self.command = command
        chunks = self.chunks if self.chunks is not None else [("stdout", self.stdout), ("stderr", self.stderr)]
        self._pending = [[stream, data] for stream, data in chunks if data]

    def _ready(self, stream):
        return bool(self._pending) and self._pending[0][0] == stream

    def _take(self, stream, nbytes):
        head = self._pending[0]
        data, head[1] = head[1][:nbytes], head[1][nbytes:]
        if not head[1]:
            self._pending.pop(0)
        self.reads.append((stream, len(data)))
        return data

    def recv_ready(self):
        return self._ready("stdout")

    def recv_stderr_ready(self):
        return self._ready("stderr")

    def recv(self, nbytes):
        return self._take("stdout", nbytes)

    def recv_stderr(self, nbytes):
        return self._take("stderr", nbytes)

    def exit_status_ready(self):
        return not self._pending

    def recv_exit_status(self):
        return self.exit_code

    def close(self):
        self.closed = True


class FakeTransport:
    def __init__(self, ssh):
        self.ssh = ssh

    def is_active(self):
        return True

    def open_session(self):
        if self.ssh.open_error is not None:
            raise self.ssh.open_error
        self.ssh.sessions_opened += 1
        return self.ssh.channel


class FakeClient:
    def __init__(self, ssh):
        self.ssh = ssh
        self.policy = None
        self.connect_kwargs = None
        self.connected = False
        self.closed = False

    def set_missing_host_key_policy(self, policy):
        self.policy = policy

    def connect(self, **kwargs):
        self.connect_kwargs = kwargs
        if self.ssh.connect_error is not None:
            raise self.ssh.connect_error
        self.connected = True

    def get_transport(self):
        return FakeTransport(self.ssh) if self.connected else None

    def close(self):
        self.closed = True


class FakeSSH:
    """Stands in for paramiko.SSHClient; one instance per test."""

    def __init__(self):
        self.channel = FakeChannel()
        self.connect_error = None
        self.open_error = None
        self.sessions_opened = 0
        self.clients = []

    def __call__(self):
        client = FakeClient(self)
        self.clients.append(client)
        return client

    @property
    def client(self):
        return self.clients[-1]


@pytest.fixture
def fake_ssh(monkeypatch):
    import deploy.ssh

    ssh = FakeSSH()
    monkeypatch.setattr(deploy.ssh.paramiko, "SSHClient", ssh)
    return ssh
