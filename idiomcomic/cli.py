"""
Command line entry point to run the IdiomComic pipeline end-to-end.

Usage:
    idiomcomic --idiom 守株待兔 --category child --child-level primary_school \
        --include-video --output idiom_artifact.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
from pathlib import Path
from typing import Any, Sequence

from tqdm.auto import tqdm

from idiomcomic.common import EnvironmentCredentialProvider, PipelineRunError
from idiomcomic.pipeline import IdiomComicOrchestrator, PipelineConfig, load_mapping_file
from idiomcomic.story_generation import AudienceClass, IdiomRequest

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Renders orchestrator progress as a 0-100 tqdm bar plus step messages.
    """

    def __init__(self) -> None:
        self._bar: tqdm | None = None
        self._position = 0

    def __call__(self, label: str, percent: int | None) -> None:
        if percent is None:
            self._write(f"  {label}")
            return

        if self._bar is None:
            self._bar = tqdm(total=100, desc="IdiomComic", unit="%")
        self._write(f"[{percent:>3}%] {label}")
        if percent > self._position:
            self._bar.update(percent - self._position)
            self._position = percent
        if percent >= 100:
            self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


class InteractiveCredentialProvider(EnvironmentCredentialProvider):
    """
    Environment-backed provider that prompts for a Replicate token when asked to select one.
    """

    async def request_credential_selection(self) -> None:
        token = await asyncio.to_thread(
            getpass.getpass, "Replicate API token (leave blank to skip video): "
        )
        token = token.strip()
        if token:
            self._replicate_api_token = token
        else:
            logger.warning("No Replicate API token entered; video generation will likely fail.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn an idiom into a narrated, illustrated, optionally animated comic."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--idiom", help="The idiom to explain and illustrate.")
    source.add_argument(
        "--request",
        help="Path to a YAML/JSON request file (idiom, audience or category/child_level, ...).",
    )
    parser.add_argument(
        "--audience",
        choices=[member.value for member in AudienceClass],
        default=None,
        help="Target audience class.",
    )
    parser.add_argument(
        "--category",
        choices=["child", "adult", "senior"],
        default=None,
        help="Audience category; combine with --child-level for children.",
    )
    parser.add_argument(
        "--child-level",
        choices=["kindergarten", "primary_school", "middle_school"],
        default=None,
        help="Child sub-level used with --category child (default: primary_school).",
    )
    parser.add_argument(
        "--include-video",
        action="store_true",
        default=False,
        help="Request the animated video (kindergarten and primary school only).",
    )
    parser.add_argument("--language", default=None, help="Language for the narrative text.")
    parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML/JSON pipeline configuration file.",
    )
    parser.add_argument(
        "--media-dir",
        default=None,
        help="Directory where the downloaded video is written.",
    )
    parser.add_argument(
        "--output",
        default="idiom_artifact.yaml",
        help="Output YAML file for the assembled artifact.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_request(args: argparse.Namespace) -> IdiomRequest:
    data: dict[str, Any] = {}
    if args.request:
        data.update(load_mapping_file(Path(args.request)))
    if args.idiom:
        data["idiom"] = args.idiom
    if args.audience:
        data["audience"] = args.audience
    if args.category:
        data.pop("audience", None)
        data["category"] = args.category
        data["child_level"] = args.child_level
    if args.include_video:
        data["include_video"] = True
    if args.language:
        data["language"] = args.language
    return IdiomRequest.from_mapping(data)


def build_config(args: argparse.Namespace) -> PipelineConfig:
    overrides: dict[str, Any] = {"credential_provider": InteractiveCredentialProvider()}
    if args.media_dir:
        overrides["media_dir"] = Path(args.media_dir)
    if args.config:
        return PipelineConfig.from_file(args.config, **overrides)
    return PipelineConfig.from_env(**overrides)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        request = build_request(args)
        config = build_config(args)
    except ValueError as exc:
        tqdm.write(f"Invalid input: {exc}")
        return 2

    orchestrator = IdiomComicOrchestrator(config)
    tracker = ProgressTracker()
    try:
        artifact = asyncio.run(orchestrator.run_request(request, progress_callback=tracker))
    except PipelineRunError as exc:
        tqdm.write(str(exc))
        return 1
    finally:
        tracker.close()

    output_path = Path(args.output)
    output_path.write_text(artifact.to_yaml(), encoding="utf-8")
    tqdm.write(f"Saved idiom artifact to {output_path}")
    if request.include_video and artifact.video_asset is None:
        tqdm.write("Animated video unavailable for this run.")
    elif artifact.video_asset is not None:
        tqdm.write(f"Animated video saved to {artifact.video_asset}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
