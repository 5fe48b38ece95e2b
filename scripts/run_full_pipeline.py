"""
CLI example to run the complete IdiomComic pipeline end-to-end.

Usage:
    python scripts/run_full_pipeline.py \
        --idiom 守株待兔 \
        --audience primary_school \
        --include-video \
        --output idiom_artifact.yaml
"""

from __future__ import annotations

from idiomcomic.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
