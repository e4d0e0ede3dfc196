#!/usr/bin/env python3
"""Generate the OpenAPI document from the FastAPI app and write it to openapi/openapi.yaml."""

from __future__ import annotations

from pathlib import Path

import yaml

from userapi.main import app

REPO_ROOT = Path(__file__).resolve().parent.parent
OUTPUT_PATH = REPO_ROOT / 'openapi' / 'openapi.yaml'

HEADER = (
    '# AUTO-GENERATED from the userapi FastAPI app - DO NOT EDIT\n'
    '# Regenerate with: uv run python scripts/generate_openapi.py\n'
)


def write_openapi(output_path: Path = OUTPUT_PATH) -> Path:
    spec = app.openapi()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        f.write(HEADER)
        yaml.dump(spec, f, default_flow_style=False, sort_keys=False)
    return output_path


def main():
    path = write_openapi()
    print(f'OpenAPI spec written to {path}')


if __name__ == '__main__':
    main()
