#!/usr/bin/env python3
"""
Layer Palette - CLI Entry Point

Extract a color palette and per-color layers from an image.
"""

import argparse
import os
import sys
from pathlib import Path

from layerpalette.config import ClusterConfig
from layerpalette.session import PaletteSession
from layerpalette.utils import fit_within, load_image, save_image


def build_config(args) -> ClusterConfig:
    """Map command line flags onto a validated ClusterConfig."""
    try:
        return ClusterConfig(
            color_weight=args.color_weight,
            spatial_weight=args.spatial_weight,
            k=args.clusters,
            max_samples=args.max_samples,
            max_iterations=args.max_iterations,
            max_dimension=args.max_dimension,
            deduplicate=not args.all_pixels,
            seed=args.seed,
        ).validate()
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


def run_session(args) -> PaletteSession:
    if not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)

    config = build_config(args)
    print(f"Input: {args.input}")
    print(f"Clusters: {config.k}")
    print(f"Weights: color={config.color_weight}, spatial={config.spatial_weight}")
    print()

    print("Loading image...")
    image = load_image(args.input)
    analysis = fit_within(image, config.max_dimension)
    if analysis.size != image.size:
        print(f"Downscaled {image.size[0]}x{image.size[1]} -> {analysis.size[0]}x{analysis.size[1]} for analysis")

    session = PaletteSession(config)
    print("Clustering...")
    session.load_image(analysis)
    return session


def print_palette(session: PaletteSession) -> None:
    print("\nPalette:")
    for i, (hex_color, share) in enumerate(zip(session.hex_palette, session.coverage)):
        print(f"  {i + 1:2d}. {hex_color}  ({share * 100:.1f}%)")


def parse_color_edit(value: str):
    """Parse an INDEX=#RRGGBB edit (1-based index, as printed in the palette)."""
    index, sep, color = value.partition("=")
    if not sep or not index.strip().isdigit():
        raise argparse.ArgumentTypeError(f"Expected INDEX=#RRGGBB, got {value!r}")
    return int(index) - 1, color.strip()


def cmd_extract(args):
    """Extract a palette, recolor the image and write one layer per color."""
    print("=" * 50)
    print("Layer Palette - Extract")
    print("=" * 50)

    session = run_session(args)
    if not session.loaded:
        print("Error: Image has no opaque pixels to cluster")
        sys.exit(1)

    for index, color in args.set_color or []:
        try:
            session.edit_color(index, color)
        except (IndexError, ValueError) as e:
            print(f"Error: {e}")
            sys.exit(1)
        print(f"Color {index + 1} set to {color}")
    session.flush()

    print_palette(session)

    save_image(session.result.recolored_image(), args.output)
    if args.layers_dir:
        stem = Path(args.input).stem
        for i, layer in enumerate(session.result.layer_images()):
            save_image(layer, os.path.join(args.layers_dir, f"{stem}_layer_{i + 1}.png"))

    print(f"\nDone! Recolored image saved to: {args.output}")


def cmd_palette(args):
    """Print the palette only."""
    session = run_session(args)
    if not session.loaded:
        print("Error: Image has no opaque pixels to cluster")
        sys.exit(1)
    print_palette(session)


def add_cluster_arguments(parser):
    parser.add_argument("--input", "-i", required=True, help="Input image path")
    parser.add_argument("--clusters", "-k", type=int, default=6,
                        help="Number of palette colors (default: 6)")
    parser.add_argument("--color-weight", "-c", type=float, default=1.0,
                        help="Weight of the color distance (default: 1.0)")
    parser.add_argument("--spatial-weight", "-s", type=float, default=0.1,
                        help="Weight of the spatial distance (default: 0.1)")
    parser.add_argument("--max-samples", type=int, default=800_000,
                        help="Sampling cap (default: 800000)")
    parser.add_argument("--max-iterations", type=int, default=50,
                        help="K-Means iteration cap (default: 50)")
    parser.add_argument("--max-dimension", type=int, default=2000,
                        help="Downscale images larger than this before analysis (default: 2000)")
    parser.add_argument("--all-pixels", action="store_true",
                        help="Sample from all pixels instead of unique colors")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible sampling")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Layer Palette - Extract color palettes and layers from images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extract a 6-color palette with layers
  python main.py extract --input photo.jpg --output recolored.png --layers-dir layers/

  # Favor spatial grouping
  python main.py extract --input photo.jpg --spatial-weight 2.0 --clusters 8

  # Replace the second palette color
  python main.py extract --input photo.jpg --set-color 2=#ff8800

  # Just print the palette
  python main.py palette --input photo.jpg --seed 7
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # ========================
    # Extract Command
    # ========================
    extract_parser = subparsers.add_parser("extract", help="Recolor an image and export layers")
    add_cluster_arguments(extract_parser)
    extract_parser.add_argument("--output", "-o", default="recolored.png", help="Output file path")
    extract_parser.add_argument("--layers-dir", "-l", help="Directory for per-color layer PNGs")
    extract_parser.add_argument("--set-color", action="append", type=parse_color_edit,
                                metavar="INDEX=#RRGGBB",
                                help="Override a palette color (1-based index, repeatable)")
    extract_parser.set_defaults(func=cmd_extract)

    # ========================
    # Palette Command
    # ========================
    palette_parser = subparsers.add_parser("palette", help="Print the extracted palette")
    add_cluster_arguments(palette_parser)
    palette_parser.set_defaults(func=cmd_palette)

    # Parse and execute
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
