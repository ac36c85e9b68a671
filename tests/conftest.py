"""
Shared fixtures.

``fake_git`` is a tiny executable standing in for git so clone/pull
runs can be exercised without network access. Its behaviour is driven
by environment variables, which the tool invoker passes through:

- FAKE_GIT_MODE: ``ok`` (default), ``auth_fail`` or ``version_fail``
- FAKE_GIT_LAYOUT: comma separated relative file paths to create
"""

import sys

import pytest


FAKE_GIT = """#!@PYTHON@
import os
import pathlib
import sys

args = sys.argv[1:]
config = []
while len(args) >= 2 and args[0] == "-c":
    config.append(args[1])
    args = args[2:]
if not args:
    sys.exit(2)
mode = os.environ.get("FAKE_GIT_MODE", "ok")

if args[0] == "--version":
    if mode == "version_fail":
        sys.exit(1)
    print("git version 2.99.0 (fake)")
    sys.exit(0)

if args[0] == "pull":
    print("Already up to date.")
    sys.exit(0)

if args[0] == "clone":
    url, dest = args[-2], pathlib.Path(args[-1])
    print("Cloning into '%s'..." % dest, file=sys.stderr)
    print("remote: url=%s" % url, file=sys.stderr)
    for item in config:
        print("remote: config %s" % item, file=sys.stderr)
    (dest / ".git").mkdir(parents=True, exist_ok=True)
    (dest / ".git" / "config").write_text(
        chr(10).join(["[remote origin]", "url = " + url, ""])
    )
    if mode == "auth_fail":
        print("fatal: Authentication failed", file=sys.stderr)
        sys.exit(1)
    for pct in (10, 50, 100):
        print("Receiving objects: %3d%% (%d/100)" % (pct, pct), flush=True)
    for rel in os.environ.get("FAKE_GIT_LAYOUT", "").split(","):
        if rel:
            path = dest / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("content of " + rel)
    pack = dest / ".git" / "objects" / "pack"
    pack.mkdir(parents=True, exist_ok=True)
    locked = pack / "pack-1.idx"
    locked.write_text("idx")
    os.chmod(locked, 0o444)
    sys.exit(0)

sys.exit(2)
"""


FULL_LAYOUT = ",".join([
    "3dModel/Backdrop.fbx",
    "Plugins/Native.dll",
    "Scripts/Foo.cs",
    "Scripts/Menu/Navigation.cs",
    "Materials/Shadow.mat",
    "Resources/Config.json",
    "UI/Main.uxml",
])


@pytest.fixture
def fake_git(tmp_path_factory):
    """Path of an executable fake git."""
    if sys.platform == "win32":
        pytest.skip("fake git relies on a POSIX shebang")
    path = tmp_path_factory.mktemp("bin") / "git"
    path.write_text(FAKE_GIT.replace("@PYTHON@", sys.executable))
    path.chmod(0o755)
    return path


@pytest.fixture
def full_layout():
    """Every category of the default relocation map, with nesting."""
    return FULL_LAYOUT
