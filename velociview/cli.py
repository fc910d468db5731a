#!/usr/bin/env python3
"""
VelociView CLI

Command-line interface for overlaying activity stats (distance, pace, elevation,
route map, ...) from a GPX or TCX file onto a photo.
"""

import argparse
import json
import logging
import sys

from velociview import config
from velociview.lib.composer import ComposeRequest, compose_overlay, load_activity
from velociview.lib.export import (
    POSITION_PRESETS,
    build_download_filename,
    get_mime_and_ext,
    normalize_format,
    parse_position,
    save_image,
)
from velociview.lib.fields import OVERLAY_FIELD_ORDER, get_field_label, sort_fields
from velociview.lib.fonts import DEFAULT_FONT_FAMILY
from velociview.lib.options import (
    BackgroundMode,
    LayoutMode,
    MapPosition,
    OverlayOptions,
    TextAlign,
)
from velociview.lib.route_map import RouteOptions
from velociview.lib.stats import UnitSystem
from velociview.lib.watermark import WatermarkAssets

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = "distance,movingTime,avgSpeed"


def _choices(enum_cls):
    return [m.value for m in enum_cls]


def build_parser():
    parser = argparse.ArgumentParser(
        prog='velociview',
        description='Overlay activity stats from a GPX/TCX file onto a photo',
        epilog='Examples:\n'
               '  %(prog)s --photo ride.jpg --activity ride.gpx -o out.png\n'
               '  %(prog)s --photo run.jpg --activity run.tcx --fields distance,avgPace,routeMap '
               '--layout auto --position "top right"\n'
               '  %(prog)s --activity ride.gpx --print-stats --units imperial\n',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Input / output
    io_group = parser.add_argument_group('input and output')
    io_group.add_argument('--photo', help='Photo to annotate (JPEG, PNG, WebP, ...)')
    io_group.add_argument('--activity', '-a', help='Activity file (.gpx or .tcx)')
    io_group.add_argument('--output', '-o', default=None,
                          help='Output image path (default: derived from track name and stats)')
    io_group.add_argument('--format', '-f', choices=['png', 'jpeg', 'webp'], default=None,
                          help='Output format (default: from --output extension, else png)')
    io_group.add_argument('--units', '-u', choices=_choices(UnitSystem), default=config.DEFAULT_UNITS,
                          help=f'Unit system (default: {config.DEFAULT_UNITS})')

    # Overlay styling
    overlay_group = parser.add_argument_group('overlay')
    overlay_group.add_argument('--fields', default=DEFAULT_FIELDS,
                               help=f'Comma separated field ids (default: {DEFAULT_FIELDS}). '
                                    'See --list-fields')
    overlay_group.add_argument('--position', '-p', default='bottom left',
                               help=f'Preset ({", ".join(POSITION_PRESETS)}) or "x,y" fractions '
                                    '(default: bottom left)')
    overlay_group.add_argument('--scale', type=float, default=1.0,
                               help='Text scale, 1.0 = 32px values (default: 1.0)')
    overlay_group.add_argument('--font', default=DEFAULT_FONT_FAMILY,
                               help=f'Font family list (default: "{DEFAULT_FONT_FAMILY}")')
    overlay_group.add_argument('--color', default='#ffffff',
                               help='Text and mini-map color (default: #ffffff)')
    overlay_group.add_argument('--background-color', default='#000000',
                               help='Panel color (default: #000000)')
    overlay_group.add_argument('--background', choices=_choices(BackgroundMode), default='dark',
                               help='Panel behind the stats (default: dark)')
    overlay_group.add_argument('--opacity', type=float, default=0.5,
                               help='Panel opacity 0..1 (default: 0.5)')
    overlay_group.add_argument('--align', choices=_choices(TextAlign), default='left',
                               help='Text alignment (default: left)')
    overlay_group.add_argument('--layout', choices=_choices(LayoutMode), default='list',
                               help='list, auto grid or fixed columns (default: list)')
    overlay_group.add_argument('--columns', type=int, default=2,
                               help='Grid columns for --layout fixed (default: 2)')
    overlay_group.add_argument('--gap-x', type=float, default=1.0,
                               help='Horizontal grid gap multiplier (default: 1.0)')
    overlay_group.add_argument('--gap-y', type=float, default=1.0,
                               help='Vertical grid gap multiplier (default: 1.0)')
    overlay_group.add_argument('--map-position', choices=_choices(MapPosition), default='grid',
                               help='Where the route mini-map goes (default: grid)')

    # Full-frame route
    route_group = parser.add_argument_group('full-frame route')
    route_group.add_argument('--route', action='store_true',
                             help='Draw the whole route over the photo with start/end markers')
    route_group.add_argument('--route-scale', type=float, default=1.0,
                             help='Route size relative to fitting the image (default: 1.0)')
    route_group.add_argument('--route-position', default='center',
                             help='Preset or "x,y" for the route center (default: center)')
    route_group.add_argument('--route-color', default='#FC4C02',
                             help='Route color (default: #FC4C02)')
    route_group.add_argument('--route-width', type=float, default=3.0,
                             help='Route line width (default: 3)')

    parser.add_argument('--watermark', action='store_true', help='Add the VelociView watermark')
    parser.add_argument('--print-stats', action='store_true',
                        help='Print the formatted stats as JSON and exit')
    parser.add_argument('--list-fields', action='store_true', help='List overlay field ids and exit')
    parser.add_argument('--debug', action='store_true', help='Enable debug output')
    return parser


def list_fields():
    """Print the field catalog in display order"""
    print(f"\n{'='*60}")
    print("Overlay fields (rendered in this order)")
    print(f"{'='*60}\n")
    for overlay_field in OVERLAY_FIELD_ORDER:
        print(f"  {overlay_field.value:<14} {get_field_label(overlay_field)}")
    print()


def build_options(args):
    """
    Turn parsed arguments into overlay and route options

    Raises:
        ValueError: for invalid fields, positions, colors or numbers
    """
    fields = sort_fields(f for f in args.fields.split(',') if f.strip())
    overlay = OverlayOptions(
        selected_fields=fields,
        position=parse_position(args.position),
        scale=args.scale,
        font_family=args.font,
        primary_color=args.color,
        secondary_color=args.background_color,
        background_mode=args.background,
        background_opacity=args.opacity,
        text_align=args.align,
        layout_mode=args.layout,
        grid_columns=args.columns,
        grid_gap_x=args.gap_x,
        grid_gap_y=args.gap_y,
        map_position=args.map_position,
    )
    route = None
    if args.route:
        if args.route_scale <= 0:
            raise ValueError("--route-scale must be greater than 0")
        route = RouteOptions(
            scale=args.route_scale,
            position=parse_position(args.route_position),
            color=args.route_color,
            line_width=args.route_width,
        )
    return overlay, route


def _fail(message):
    print(f"❌ Error: {message}", file=sys.stderr)
    sys.exit(1)


def main(argv=None):
    """Parse arguments, render the overlay and write the image"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.list_fields:
        list_fields()
        return 0

    if not args.activity:
        _fail("--activity is required")

    if args.print_stats:
        try:
            _, values = load_activity(args.activity, units=args.units)
        except (ValueError, OSError) as e:
            _fail(str(e))
        data = values.to_dict()
        data.pop('routePoints', None)
        data['routePointCount'] = len(values.route_points)
        print(json.dumps(data, indent=2))
        return 0

    if not args.photo:
        _fail("--photo is required to render an overlay")

    try:
        overlay, route = build_options(args)
        units = UnitSystem.parse(args.units)
    except ValueError as e:
        _fail(str(e))

    assets = WatermarkAssets(config.WATERMARK_LIGHT, config.WATERMARK_DARK) if args.watermark else None
    request = ComposeRequest(
        photo=args.photo,
        activity=args.activity,
        units=units,
        overlay=overlay,
        route=route,
        watermark=args.watermark,
        watermark_assets=assets,
    )

    try:
        result = compose_overlay(request)
    except ValueError as e:
        _fail(str(e))
    except OSError as e:
        _fail(f"Could not read input: {e}")

    output = args.output
    fmt = args.format
    if not output:
        fmt = normalize_format(fmt)
        _, ext = get_mime_and_ext(fmt)
        output = build_download_filename('overlay', result.values, ext)

    try:
        save_image(result.image, output, fmt)
    except OSError as e:
        _fail(f"Could not write {output}: {e}")

    box = result.box
    print(f"✓ Saved {output}")
    print(f"  Overlay box: x={box.x} y={box.y} width={box.width} height={box.height}")
    if result.watermark_rect:
        print(f"  Watermark: {result.watermark_rect}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
