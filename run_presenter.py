from __future__ import annotations

import os
import signal
import subprocess
import sys
import time
import webbrowser
from pathlib import Path


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def _run_with_env(cmd: list[str], *, cwd: Path, env_overrides: dict[str, str]) -> subprocess.Popen:
    env = os.environ.copy()
    env.update(env_overrides)
    return subprocess.Popen(
        cmd,
        cwd=str(cwd),
        env=env,
        stdout=None,
        stderr=None,
        shell=False,
    )


def main(argv: list[str]) -> int:
    root = _repo_root()
    port = (os.environ.get("MP_PORT") or "8000").strip()

    env_overrides: dict[str, str] = {}
    # Optional first argument: the project document to present.
    if argv:
        project = Path(argv[0]).expanduser().resolve()
        if not project.exists():
            print(f"[run_presenter] Project not found: {project}")
            return 1
        env_overrides["MP_PROJECT_PATH"] = str(project)

    backend_cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "presenter.main:app",
        "--app-dir",
        str(root / "apps" / "backend"),
        "--reload",
        "--port",
        port,
    ]
    proc = _run_with_env(backend_cmd, cwd=root, env_overrides=env_overrides)

    try:
        time.sleep(0.5)
        print("")
        print(f"[run_presenter] Backend API:  http://localhost:{port}/api/presentation")
        print(f"[run_presenter] Live view:    http://localhost:{port}/api/view/state")
        print("")
        print("[run_presenter] Press Ctrl+C to stop.")

        try:
            webbrowser.open(f"http://localhost:{port}/docs", new=1)
        except webbrowser.Error:
            pass

        while True:
            code = proc.poll()
            if code is not None:
                print(f"[run_presenter] Backend exited with code {code}.")
                return code
            time.sleep(0.2)
    except KeyboardInterrupt:
        return 0
    finally:
        if proc.poll() is None:
            if sys.platform.startswith("win"):
                proc.terminate()
            else:
                proc.send_signal(signal.SIGTERM)
            try:
                proc.wait(timeout=0.6)
            except subprocess.TimeoutExpired:
                proc.kill()


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
