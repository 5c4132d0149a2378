import os
import re
import sys
import warnings

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

from argparse import ArgumentParser, ArgumentTypeError, RawDescriptionHelpFormatter

from mandelbands import (
    MAX_ITERATIONS,
    PlaneWindow,
    RenderError,
    RenderParameters,
    host_concurrency,
    parse_bounds,
    parse_complex,
    render_frame,
    write_image,
)

_NEGATIVE_POINT = re.compile(r"^-\.?\d")

_EPILOG = """\
Example:
  python fractal.py fractal.png 1000x750 -1.20,0.35 -1,0.20
"""


def _bounds_arg(text):
    bounds = parse_bounds(text)
    if bounds is None:
        raise ArgumentTypeError(f"invalid bounds '{text}', expected WIDTHxHEIGHT with positive integers")
    return bounds


def _point_arg(text):
    point = parse_complex(text)
    if point is None:
        raise ArgumentTypeError(f"invalid point '{text}', expected RE,IM")
    return point


def _positive_int(text):
    try:
        value = int(text)
    except ValueError:
        raise ArgumentTypeError(f"'{text}' is not an integer") from None
    if value < 1:
        raise ArgumentTypeError(f"'{text}' must be at least 1")
    return value


class _Parser(ArgumentParser):
    """Treat corner points such as ``-1.20,0.35`` as positionals, not options."""

    def _parse_optional(self, arg_string):
        if _NEGATIVE_POINT.match(arg_string):
            return None
        return super()._parse_optional(arg_string)


def build_parser():
    parser = _Parser(
        description='Render the Mandelbrot set over a window of the complex plane as a grayscale image.',
        epilog=_EPILOG,
        formatter_class=RawDescriptionHelpFormatter,
    )

    parser.add_argument('output', metavar='FILE',
                        help='image file to write')

    parser.add_argument('bounds', type=_bounds_arg, metavar='BOUNDS',
                        help='image size in pixels, e.g. 1000x750')

    parser.add_argument('upper_left', type=_point_arg, metavar='UPPER_LEFT',
                        help='complex point at the upper-left corner, e.g. -1.20,0.35')

    parser.add_argument('lower_right', type=_point_arg, metavar='LOWER_RIGHT',
                        help='complex point at the lower-right corner, e.g. -1,0.20')

    parser.add_argument('--max-iterations', type=_positive_int,
                        dest='max_iterations', help='iteration limit before a point counts as inside the set',
                        metavar='MAX_ITERATIONS', default=MAX_ITERATIONS)

    parser.add_argument('--threads', type=_positive_int,
                        dest='threads', help='number of bands rendered in parallel. Default: logical CPU count.',
                        metavar='THREADS', default=None)

    parser.add_argument('--format', type=str,
                        dest='format', help='image format, any extension supported by Pillow. Default: taken from FILE, else "png".',
                        metavar='FORMAT', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics and the band layout.')

    return parser


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    log("TensorFlow version: %s" % tf.__version__)

    params = RenderParameters(
        bounds=opt.bounds,
        window=PlaneWindow(upper_left=opt.upper_left, lower_right=opt.lower_right),
        max_iterations=opt.max_iterations,
    )
    threads = opt.threads if opt.threads is not None else host_concurrency()
    log("Rendering {0}x{1} with {2} thread(s)".format(params.bounds.width, params.bounds.height, threads))

    try:
        result = render_frame(params, threads=threads)
    except RenderError as exc:
        parser.exit(1, f"{parser.prog}: error: {exc}\n")

    for band in result.bands:
        log("band {0}: rows {1}..{2}, {3} -> {4}".format(
            band.index, band.top, band.top + band.rows,
            band.window.upper_left, band.window.lower_right,
        ))
    log("Rendered in {0:.3f}s".format(result.elapsed))

    try:
        path = write_image(opt.output, result.pixels, result.bounds, opt.format)
    except (OSError, ValueError, KeyError) as exc:
        parser.exit(1, f"{parser.prog}: error: could not write {opt.output}: {exc}\n")

    log("Wrote %s" % path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
