#!/usr/bin/env python3
"""
Verify that all components of the Listing Reel pipeline are correctly set up.

Run with: python scripts/verify_setup.py
"""

import os
import shutil
import sys

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


def check_path(path: str, description: str) -> bool:
    """Check if a path exists."""
    exists = os.path.exists(path)
    status = "✓" if exists else "✗"
    print(f"  {status} {description}: {path}")
    return exists


def check_setting(name: str, value, required: bool) -> bool:
    ok = bool(value)
    status = "✓" if ok else ("✗" if required else "⚠")
    print(f"  {status} {name}{'' if ok else ' not set'}")
    return ok or not required


def main():
    print("=" * 60)
    print("Listing Reel Setup Verification")
    print("=" * 60)

    errors = []

    from listingreel import config

    print(f"\nProject root: {PROJECT_ROOT}")

    print("\n[1] ffmpeg")
    print("-" * 40)

    from listingreel.core.errors import ClipRenderError
    from listingreel.core.synthesizer import available_encoders, pick_encoder

    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg is None:
        print("  ✗ ffmpeg not found on PATH")
        errors.append("ffmpeg: not installed")
    else:
        print(f"  ✓ ffmpeg: {ffmpeg}")
        try:
            encoder = pick_encoder(available_encoders("ffmpeg"))
            print(f"  ✓ Clip encoder: {encoder.name} (.{encoder.extension})")
        except ClipRenderError as e:
            print(f"  ✗ {e}")
            errors.append(f"ffmpeg: {e}")

    print("\n[2] Vendor Credentials")
    print("-" * 40)

    # Shotstack is needed by every job; the rest only by some.
    if not check_setting("SHOTSTACK_API_KEY", config.SHOTSTACK_API_KEY, required=True):
        errors.append("SHOTSTACK_API_KEY not set")
    for name in ("LUMA_API_KEY", "RUNWAY_API_KEY", "ELEVENLABS_API_KEY",
                 "ANTHROPIC_API_KEY", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET"):
        check_setting(name, getattr(config, name), required=False)

    print("\n[3] Shared Data Directories")
    print("-" * 40)

    for path in (config.SHARED_DATA_PATH, config.STORAGE_ROOT):
        if not os.path.exists(path):
            os.makedirs(path, exist_ok=True)
            print(f"  + Created: {path}")
        else:
            check_path(path, os.path.basename(path))

    print("\n[4] Python Imports")
    print("-" * 40)

    try:
        from listingreel.workers.pipeline import VideoPipeline  # noqa: F401

        print("  ✓ Pipeline import OK")
    except ImportError as e:
        print(f"  ✗ Pipeline import failed: {e}")
        errors.append(f"Import error: pipeline - {e}")

    try:
        from listingreel.db import Video  # noqa: F401

        print("  ✓ Database models import OK")
    except ImportError as e:
        print(f"  ✗ Database models import failed: {e}")
        errors.append(f"Import error: Database - {e}")

    print("\n" + "=" * 60)

    if errors:
        print(f"VERIFICATION FAILED - {len(errors)} error(s) found:")
        print("-" * 40)
        for error in errors:
            print(f"  • {error}")
        print("\nPlease fix the above issues before running the worker.")
        print("\nHints:")
        print("  - Install ffmpeg with libx264 (apt install ffmpeg / brew install ffmpeg)")
        print("  - Export vendor keys, e.g. SHOTSTACK_API_KEY=...")
        return 1
    else:
        print("✓ VERIFICATION PASSED - All checks OK!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
