import os
import sys
import warnings
from argparse import ArgumentParser
from dataclasses import dataclass

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

from escapetime import (
    FractalKind,
    RenderBuilder,
    RenderConfig,
    render,
    save_image,
)


def select_device() -> str:
    """Use the first GPU when TensorFlow sees one, otherwise the CPU."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


@dataclass(frozen=True)
class RenderJob:
    kind: str
    output: str


def build_parser():
    parser = ArgumentParser(description='Render Julia and Mandelbrot escape-time images.')

    parser.add_argument('--width', type=int, required=True,
                        dest='width', help='image width in pixels', metavar='WIDTH')

    parser.add_argument('--height', type=int, required=True,
                        dest='height', help='image height in pixels', metavar='HEIGHT')

    parser.add_argument('--center', type=float, nargs=2, default=(0.0, 0.0),
                        dest='center', help='complex-plane point at the image center',
                        metavar=('RE', 'IM'))

    parser.add_argument('--ratio', type=float, default=0.001,
                        dest='ratio', help='complex-plane units per pixel', metavar='RATIO')

    parser.add_argument('--bounds', type=float, nargs=4, default=None,
                        dest='bounds', help='fit the image width to the rectangle '
                                            'from (RE_MIN, IM_MAX) to (RE_MAX, IM_MIN); overrides --center/--ratio',
                        metavar=('RE_MIN', 'IM_MAX', 'RE_MAX', 'IM_MIN'))

    parser.add_argument('--type', action='append', dest='types', default=None,
                        choices=[kind.value for kind in FractalKind],
                        help='fractal to render; repeat to render several images (default: julia)')

    parser.add_argument('--c', type=float, nargs=2, default=(0.0, 0.0),
                        dest='c', help='Julia parameter c', metavar=('RE', 'IM'))

    parser.add_argument('--bail-out', type=int, default=255,
                        dest='bail_out', help='maximum number of iterations per pixel', metavar='BAIL_OUT')

    parser.add_argument('--output', action='append', dest='outputs', default=None,
                        help='output file; give one per --type (default: <type>.png)', metavar='PATH')

    parser.add_argument('--workers', type=int, default=1,
                        dest='workers', help='number of threads rendering row bands in parallel',
                        metavar='WORKERS')

    parser.add_argument('--verbose', '-v', action='store_true', dest='verbose',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_jobs(opt, parser: ArgumentParser) -> list[RenderJob]:
    kinds = opt.types or [FractalKind.JULIA.value]
    outputs = opt.outputs or []
    if outputs and len(outputs) != len(kinds):
        parser.error(f"got {len(outputs)} --output values for {len(kinds)} --type values.")
    if opt.workers < 1:
        parser.error("--workers must be at least 1.")
    if not outputs:
        outputs = [f"{kind}.png" for kind in kinds]
    return [RenderJob(kind=kind, output=output) for kind, output in zip(kinds, outputs)]


def build_config(opt, job: RenderJob) -> RenderConfig:
    builder = (
        RenderBuilder()
        .size_image(opt.width, opt.height)
        .center(*opt.center)
        .set_ratio(opt.ratio)
        .set_type(job.kind)
        .set_c(*opt.c)
        .set_bailout(opt.bail_out)
        .set_filename(job.output)
    )
    if opt.bounds is not None:
        re_min, im_max, re_max, im_min = opt.bounds
        builder = builder.bounds(complex(re_min, im_max), complex(re_max, im_min))
    return builder.build()


def run_job(opt, job: RenderJob, device: str) -> None:
    config = build_config(opt, job)
    log("Rendering %s %dx%d, upper left %s, ratio %g" % (
        config.kind.value, config.width, config.height, config.viewport.upper_left, config.viewport.scale))
    buffer = render(config, workers=opt.workers, device=device)
    path = save_image(buffer, config.output)
    print("saved {0}".format(path))


def main(argv=None) -> int:
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = VERBOSE or bool(opt.verbose)

    jobs = resolve_jobs(opt, parser)
    device = select_device()

    failures = 0
    for job in jobs:
        try:
            run_job(opt, job, device)
        except (ValueError, OSError) as exc:
            failures += 1
            print(f"error: {job.kind} -> {job.output}: {exc}", file=sys.stderr)
    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
