#!/usr/bin/env python3
"""
VeoBatch - Main Entry Point

Batch-converts still images into short silent videos with Google Veo.

Usage:
    # Convert images (API key from --api-key or the API_KEY environment variable)
    python main.py generate photos/*.png --prompt "Slow zoom in" --output-dir ./output

    # Use Vertex AI instead of an AI Studio key
    python main.py generate cat.png --project my-project --access-token "$(gcloud auth print-access-token)"

    # Check configuration
    python main.py config
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("veobatch")


async def generate_videos(
    image_paths: list[str],
    prompt: Optional[str] = None,
    resolution: Optional[str] = None,
    aspect_ratio: Optional[str] = None,
    output_dir: Optional[str] = None,
    api_key: Optional[str] = None,
    project_id: Optional[str] = None,
    location: Optional[str] = None,
    access_token: Optional[str] = None,
) -> bool:
    """
    Convert every image and save the finished clips.

    Returns:
        True if every job completed
    """
    from cli.progress_monitor import ProgressMonitor
    from core.config import get_config
    from services.batch import BatchProcessor, JobStatus
    from services.video_generation import DelegatedSettings, GenerationConfig, SourceImage

    config = get_config()
    for issue in config.validate():
        logger.warning(issue)

    images = []
    for path in image_paths:
        image = SourceImage.from_path(path)
        if not image.is_image:
            logger.warning(f"Skipping {path}: not an image ({image.mime_type})")
            continue
        images.append(image)

    if not images:
        logger.error("No images to process")
        return False

    vertex = config.vertex
    delegated = DelegatedSettings(
        project_id=project_id if project_id is not None else vertex.project_id,
        location=location if location is not None else vertex.location,
        access_token=access_token if access_token is not None else vertex.access_token,
    )

    processor = BatchProcessor(
        generation_config=GenerationConfig(
            prompt=prompt if prompt is not None else config.defaults.prompt,
            resolution=resolution or config.defaults.resolution,
            aspect_ratio=aspect_ratio or config.defaults.aspect_ratio,
        ),
        api_key=api_key,
        delegated=delegated,
        config=config,
        auto_start=False,
    )

    monitor = ProgressMonitor()
    monitor.attach(processor.store)

    def handle_signal():
        logger.info("Stopping batch...")
        processor.stop()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal)

    processor.add_images(images)
    await processor.run_until_idle()

    out_dir = Path(output_dir or config.output_dir)
    jobs = processor.store.all()
    for job in jobs:
        if job.status == JobStatus.COMPLETED and job.result is not None:
            job.result.save(out_dir, job.output_filename)
        elif job.error_code in ("MISSING_CREDENTIALS", "MISSING_LOCATION"):
            logger.error("Credentials problem: pass --api-key, or --project/--access-token for Vertex AI")

    monitor.print_summary(jobs)
    return all(job.status == JobStatus.COMPLETED for job in jobs)


def show_config() -> bool:
    """Print configuration and any issues."""
    from core.config import get_config

    config = get_config()
    print(f"Model:        {config.api.model}")
    print(f"API key:      {'set' if config.api.api_key else 'not set'}")
    print(f"Vertex AI:    {'configured' if config.vertex.is_complete else 'not configured'}")
    print(f"Location:     {config.vertex.location or '-'}")
    print(f"Output dir:   {config.output_dir}")

    issues = config.validate()
    for issue in issues:
        print(f"  ! {issue}")
    return not issues


def main():
    parser = argparse.ArgumentParser(
        description="VeoBatch - batch image-to-video conversion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Convert images to videos")
    gen_parser.add_argument("images", nargs="+", help="Image files to convert")
    gen_parser.add_argument("--prompt", help="Motion prompt (silence is always enforced)")
    gen_parser.add_argument("--resolution", choices=["720p", "1080p"], help="Output resolution")
    gen_parser.add_argument("--aspect-ratio", choices=["16:9", "9:16"], help="Output aspect ratio")
    gen_parser.add_argument("--output-dir", help="Directory for finished videos")
    gen_parser.add_argument("--api-key", help="AI Studio API key (overrides API_KEY)")
    gen_parser.add_argument("--project", help="Vertex AI project ID")
    gen_parser.add_argument("--location", help="Vertex AI location (default: us-central1)")
    gen_parser.add_argument("--access-token", help="Vertex AI OAuth access token")

    # Config command
    subparsers.add_parser("config", help="Show configuration and issues")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "generate":
        result = asyncio.run(
            generate_videos(
                image_paths=args.images,
                prompt=args.prompt,
                resolution=args.resolution,
                aspect_ratio=args.aspect_ratio,
                output_dir=args.output_dir,
                api_key=args.api_key,
                project_id=args.project,
                location=args.location,
                access_token=args.access_token,
            )
        )
        sys.exit(0 if result else 1)

    elif args.command == "config":
        sys.exit(0 if show_config() else 1)


if __name__ == "__main__":
    main()
