"""
Retention sweep entry point for an external scheduler, e.g. cron:

    0 3 * * *  clipshare-delete-old-videos
"""
import logging
from argparse import ArgumentParser

from app.config import get_settings
from app.database import SessionLocal
from app.services.blob_storage import get_storage
from app.services.retention import delete_old_videos


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = ArgumentParser(description="Delete videos older than the retention window")
    parser.add_argument("--days", type=int, default=settings.video_retention_days)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session = SessionLocal()
    try:
        result = delete_old_videos(session, get_storage(), retention_days=args.days)
    finally:
        session.close()
    print(f"[retention] deleted {len(result.deleted)} video(s), {len(result.failed)} failed")
    return 1 if result.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
