#!/usr/bin/env python3
"""Generate a synthetic clip for exercising quietcut end to end.

Audio alternates tones and digital silence following ``PATTERN``; each tone
gets its own background colour, silences are black. The 0.3s gap is shorter
than the default minimum silence, so it must survive. The video track is cut
``--video-shortfall`` seconds before the audio ends, which makes the composer
clamp the last segment to the shorter track.
"""

import argparse
import subprocess
from pathlib import Path

# (seconds, tone Hz or None for silence, colour)
PATTERN = [
    (3.0, 440, "blue"),
    (3.0, None, "black"),
    (4.0, 880, "red"),
    (0.3, None, "black"),
    (3.7, 440, "green"),
    (2.0, None, "black"),
    (4.0, 660, "yellow"),
]


def build_filter(sample_rate: int, channels: int, video_seconds: float) -> str:
    layout = "stereo" if channels == 2 else "mono"
    audio, video = [], []
    for i, (seconds, tone, colour) in enumerate(PATTERN):
        if tone is None:
            audio.append(f"anullsrc=r={sample_rate}:cl={layout}:d={seconds}[a{i}]")
        else:
            audio.append(
                f"sine=f={tone}:r={sample_rate}:d={seconds},"
                f"aformat=channel_layouts={layout}[a{i}]"
            )
        video.append(f"color=c={colour}:s=320x240:d={seconds}:r=30[v{i}]")

    n = len(PATTERN)
    audio_labels = "".join(f"[a{i}]" for i in range(n))
    video_labels = "".join(f"[v{i}]" for i in range(n))
    return ";".join(
        audio
        + video
        + [
            f"{audio_labels}concat=n={n}:v=0:a=1[aout]",
            f"{video_labels}concat=n={n}:v=1:a=0,trim=end={video_seconds}[vout]",
        ]
    )


def generate_test_video(
    output: Path,
    sample_rate: int = 48000,
    channels: int = 2,
    video_shortfall: float = 1.0,
) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    total = sum(seconds for seconds, _, _ in PATTERN)

    cmd = [
        "ffmpeg", "-y",
        "-filter_complex", build_filter(sample_rate, channels, total - video_shortfall),
        "-map", "[vout]",
        "-map", "[aout]",
        "-c:v", "libx264",
        "-c:a", "aac",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    print(f"Generated: {output} ({total:g}s audio, {total - video_shortfall:g}s video)")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("output", nargs="?", type=Path, default=Path("tests/fixtures/synthetic.mp4"))
    parser.add_argument("--sample-rate", type=int, default=48000)
    parser.add_argument("--channels", type=int, choices=(1, 2), default=2)
    parser.add_argument("--video-shortfall", type=float, default=1.0,
                        help="Seconds of video missing at the end")
    args = parser.parse_args()
    generate_test_video(args.output, args.sample_rate, args.channels, args.video_shortfall)


if __name__ == "__main__":
    main()
