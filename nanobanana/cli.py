"""nanobanana CLI entrypoints."""

from __future__ import annotations

import argparse
import glob
import platform
import sys
import time
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable

from . import __version__
from .config import Config, load_config
from .errors import ErrorCode, ImageOperationError, NanobananaError
from .imaging.combine import ALIGNMENTS, DIRECTIONS, CombineOptions, combine_files, normalize_direction
from .imaging.io import resolve_save_format
from .imaging.transform import FIT_MODES, TransformOptions, transform_file
from .imaging.transparency import (
    DEFAULT_COLOR,
    DEFAULT_TOLERANCE,
    TransparencyOptions,
    default_output_path,
    inspect_file,
    make_transparent_file,
)
from .output import Formatter
from .prompts import (
    DEFAULT_ICON_SIZES,
    DEFAULT_ICON_STYLE,
    DEFAULT_PATTERN_TYPE,
    ICON_SIZE_RANGE,
    ICON_STYLES,
    PATTERN_SIZE_RANGE,
    PATTERN_STYLES,
    PATTERN_TYPES,
    build_icon_prompt,
    build_pattern_prompt,
)
from .providers import ImageConfig, ImageProvider, create_provider, save_generated
from .providers.google_utils import (
    ASPECT_RATIOS,
    PRO_ONLY_RESOLUTIONS,
    RESOLUTIONS,
    estimate_dimensions,
    format_from_mime,
    is_pro_model,
    is_valid_aspect_ratio,
    normalize_resolution,
    parse_dims,
    ratio_for_dims,
    resolve_model_name,
)
from .utils import load_dotenv, split_output_path

Handler = Callable[[argparse.Namespace, Config, Formatter], int]

ICON_TEMP_NAME = "_temp_base.png"
PATTERN_RAW_SUFFIX = ".raw"
MAX_COUNT = 10


def _int_list(value: str) -> list[int]:
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected comma separated integers, got {value!r}") from exc


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--api-key", dest="api_key", help="Gemini API key (or set GEMINI_API_KEY)")
    common.add_argument("-m", "--model", help="Model: flash (default), pro, dryrun, or a full model id")
    common.add_argument("--json", action="store_true", help="Output in JSON format")
    common.add_argument("-q", "--quiet", action="store_true", help="Suppress non-essential output")
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    common.add_argument("--no-color", dest="no_color", action="store_true", help="Disable colored output")
    return common


def _build_parser() -> argparse.ArgumentParser:
    common = _common_parser()
    parser = argparse.ArgumentParser(
        prog="nanobanana",
        description="AI-powered image generation and manipulation CLI",
    )
    sub = parser.add_subparsers(dest="command")

    generate = sub.add_parser("generate", parents=[common], help="Generate images from text prompts")
    generate.add_argument("prompt", nargs="+")
    generate.add_argument("-o", "--output", required=True, help="Output file path")
    generate.add_argument("-i", "--input", help="Input image for editing")
    generate.add_argument("-c", "--count", type=int, default=1, help="Number of images (1-10)")
    generate.add_argument("--aspect-ratio", dest="aspect_ratio", default="1:1", help=", ".join(ASPECT_RATIOS))
    generate.add_argument("--resolution", help="1K, 2K, 4K (4K only with the pro model)")
    generate.add_argument("--no-overwrite", dest="no_overwrite", action="store_true", help="Fail if output exists")
    generate.set_defaults(handler=_handle_generate, command_name="generate")

    icon = sub.add_parser("icon", parents=[common], help="Generate icons in multiple sizes")
    icon.add_argument("prompt", nargs="+")
    icon.add_argument("-o", "--output", required=True, help="Output directory or pattern containing {size}")
    icon.add_argument("--sizes", type=_int_list, default=list(DEFAULT_ICON_SIZES), help="e.g. 16,32,64")
    icon.add_argument("--style", default=DEFAULT_ICON_STYLE, help=", ".join(ICON_STYLES))
    icon.add_argument("--background", default="transparent", help="transparent, white, black, or #RRGGBB")
    icon.set_defaults(handler=_handle_icon, command_name="icon")

    pattern = sub.add_parser("pattern", parents=[common], help="Generate seamless patterns and textures")
    pattern.add_argument("prompt", nargs="+")
    pattern.add_argument("-o", "--output", required=True, help="Output file path")
    pattern.add_argument("--size", default="512x512", help="Tile size WxH")
    pattern.add_argument("--style", help=", ".join(PATTERN_STYLES))
    pattern.add_argument("--type", dest="pattern_type", default=DEFAULT_PATTERN_TYPE, help=", ".join(PATTERN_TYPES))
    pattern.set_defaults(handler=_handle_pattern, command_name="pattern")

    transform = sub.add_parser("transform", parents=[common], help="Resize, crop, rotate, or flip an image")
    transform.add_argument("input")
    transform.add_argument("-o", "--output", required=True, help="Output file path")
    transform.add_argument("--resize", help="WxH or percentage (e.g. 800x600, 50%%)")
    transform.add_argument("--fit", default="inside", help=", ".join(FIT_MODES))
    transform.add_argument("--crop", help="left,top,width,height")
    transform.add_argument("--rotate", type=float, default=0, help="Degrees (-360 to 360)")
    transform.add_argument("--flip", action="store_true", help="Flip vertically")
    transform.add_argument("--flop", action="store_true", help="Flip horizontally (mirror)")
    transform.set_defaults(handler=_handle_transform, command_name="transform")

    combine = sub.add_parser("combine", parents=[common], help="Combine multiple images into one")
    combine.add_argument("images", nargs="+")
    combine.add_argument("-o", "--output", required=True, help="Output file path")
    combine.add_argument("--direction", default="horizontal", help=", ".join(DIRECTIONS))
    combine.add_argument("--gap", type=int, default=0, help="Gap between images in pixels")
    combine.add_argument("--columns", type=int, default=0, help="Grid columns (auto if not set)")
    combine.add_argument("--align", default="center", help=", ".join(ALIGNMENTS))
    combine.add_argument("--background", default="transparent", help="transparent, white, black, or #RRGGBB")
    combine.set_defaults(handler=_handle_combine, command_name="combine")

    transparent = sub.add_parser("transparent", help="Transparency manipulation operations")
    transparent_sub = transparent.add_subparsers(dest="transparent_command")
    make = transparent_sub.add_parser("make", parents=[common], help="Remove a background color")
    make.add_argument("input")
    make.add_argument("-o", "--output", help="Output file path")
    make.add_argument("--color", default=DEFAULT_COLOR, help="white, black, or #RRGGBB")
    make.add_argument("--tolerance", type=float, default=DEFAULT_TOLERANCE, help="Matching tolerance (0-100)")
    make.add_argument("--overwrite", action="store_true", help="Overwrite the original file")
    make.set_defaults(handler=_handle_transparent_make, command_name="transparent make")
    inspect = transparent_sub.add_parser("inspect", parents=[common], help="Analyze image transparency")
    inspect.add_argument("input")
    inspect.set_defaults(handler=_handle_transparent_inspect, command_name="transparent inspect")

    version = sub.add_parser("version", parents=[common], help="Print version information")
    version.set_defaults(handler=_handle_version, command_name="version")

    return parser


def _timing(started: float, provider: ImageProvider | None = None) -> dict[str, Any]:
    timing: dict[str, Any] = {"total_ms": int((time.monotonic() - started) * 1000)}
    if provider is not None:
        timing["api_call_ms"] = getattr(provider, "last_api_call_ms", None)
    return timing


def _image_entry(path: Path | str, fmt: str, width: int | None, height: int | None) -> dict[str, Any]:
    entry: dict[str, Any] = {"path": str(path), "format": fmt}
    if width and height:
        entry["size"] = {"width": width, "height": height}
    return entry


def _generate(
    provider: ImageProvider,
    formatter: Formatter,
    prompt: str,
    config: ImageConfig,
    input_path: str | None = None,
) -> list[Any]:
    formatter.detail(
        f"model={provider.model} aspect_ratio={config.aspect_ratio} "
        f"resolution={config.resolution or '-'} count={config.count}"
    )
    with formatter.ticker(f"Generating with {provider.model}") or nullcontext():
        if input_path:
            return provider.edit_image(input_path, prompt, config)
        return provider.generate_image(prompt, config)


def _handle_generate(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    started = time.monotonic()
    prompt = " ".join(args.prompt)
    model = resolve_model_name(config.model)

    if args.count < 1 or args.count > MAX_COUNT:
        raise ImageOperationError(ErrorCode.INVALID_COUNT, f"Count must be between 1 and {MAX_COUNT}")
    if args.aspect_ratio and not is_valid_aspect_ratio(args.aspect_ratio):
        raise ImageOperationError(
            ErrorCode.INVALID_ASPECT_RATIO,
            f"Invalid aspect ratio: {args.aspect_ratio}",
            hint=f"Valid ratios: {', '.join(ASPECT_RATIOS)}",
        )
    resolution = None
    if args.resolution:
        resolution = normalize_resolution(args.resolution)
        if resolution is None:
            raise ImageOperationError(
                ErrorCode.INVALID_RESOLUTION,
                f"Invalid resolution: {args.resolution}",
                hint=f"Valid resolutions: {', '.join(RESOLUTIONS)}",
            )
        if resolution in PRO_ONLY_RESOLUTIONS and not is_pro_model(model):
            raise ImageOperationError(
                ErrorCode.INVALID_RESOLUTION,
                f"{resolution} resolution requires the pro model",
                hint="Use -m pro",
            )
    output = Path(args.output)
    if args.no_overwrite and output.exists():
        raise ImageOperationError(
            ErrorCode.FILE_EXISTS,
            f"Output file already exists: {output}",
            hint="Use a different output path or remove --no-overwrite flag",
        )
    if args.input and not Path(args.input).is_file():
        raise ImageOperationError(ErrorCode.FILE_NOT_FOUND, f"Input file not found: {args.input}")

    provider = create_provider(config)
    formatter.progress(f"Generating image with {provider.model}...")
    if args.input:
        formatter.progress(f"Editing image: {args.input}")
    image_config = ImageConfig(aspect_ratio=args.aspect_ratio, resolution=resolution, count=args.count)
    images = _generate(provider, formatter, prompt, image_config, input_path=args.input)

    results: list[dict[str, Any]] = []
    for idx, image in enumerate(images, start=1):
        save_path = output if len(images) == 1 else split_output_path(output, idx)
        save_generated(image, save_path)
        width, height = image.dimensions() or estimate_dimensions(args.aspect_ratio)
        formatter.image_saved(str(save_path), width, height)
        results.append(_image_entry(save_path, format_from_mime(image.mime_type), width, height))

    formatter.success(
        "generate",
        {"prompt": prompt, "model": provider.model, "images": results},
        _timing(started, provider),
    )
    return 0


def _icon_targets(output: str, sizes: list[int]) -> tuple[Path, list[tuple[int, Path]]]:
    if "{size}" in output:
        out_dir = Path(output).parent
        name_pattern = Path(output).name
    else:
        out_dir = Path(output)
        name_pattern = "icon_{size}.png"
    return out_dir, [(size, out_dir / name_pattern.replace("{size}", str(size))) for size in sizes]


def _handle_icon(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    started = time.monotonic()
    prompt = " ".join(args.prompt)
    low, high = ICON_SIZE_RANGE
    if not args.sizes:
        raise ImageOperationError(ErrorCode.INVALID_SIZE, "At least one icon size is required")
    for size in args.sizes:
        if size < low or size > high:
            raise ImageOperationError(
                ErrorCode.INVALID_SIZE,
                f"Invalid icon size: {size} (must be {low}-{high})",
                hint="Common sizes: 16, 32, 64, 128, 256, 512, 1024",
            )
    if args.style not in ICON_STYLES:
        raise ImageOperationError(
            ErrorCode.INVALID_STYLE,
            f"Invalid style: {args.style}",
            hint=f"Valid styles: {', '.join(ICON_STYLES)}",
        )

    provider = create_provider(config)
    formatter.progress(f"Generating base icon with {provider.model}...")
    images = _generate(
        provider,
        formatter,
        build_icon_prompt(prompt, args.style, args.background),
        ImageConfig(aspect_ratio="1:1", count=1),
    )

    out_dir, targets = _icon_targets(args.output, args.sizes)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ImageOperationError(ErrorCode.SAVE_FAILED, f"Failed to create directory: {out_dir}") from exc

    base_path = save_generated(images[0], out_dir / ICON_TEMP_NAME)
    results: list[dict[str, Any]] = []
    try:
        for size, target in targets:
            formatter.progress(f"Creating {size}x{size} icon...")
            result = transform_file(base_path, target, TransformOptions(resize=f"{size}x{size}", fit="cover"))
            formatter.image_saved(str(target), result.width, result.height)
            results.append(_image_entry(target, result.format, result.width, result.height))
    finally:
        base_path.unlink(missing_ok=True)

    formatter.success(
        "icon",
        {
            "prompt": prompt,
            "model": provider.model,
            "style": args.style,
            "sizes": list(args.sizes),
            "images": results,
        },
        _timing(started, provider),
    )
    return 0


def _handle_pattern(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    started = time.monotonic()
    prompt = " ".join(args.prompt)
    dims = parse_dims(args.size)
    if dims is None:
        raise ImageOperationError(
            ErrorCode.INVALID_SIZE,
            f"Invalid size format: {args.size}",
            hint="Use format WxH (e.g., 512x512)",
        )
    width, height = dims
    low, high = PATTERN_SIZE_RANGE
    if not (low <= width <= high and low <= height <= high):
        raise ImageOperationError(ErrorCode.INVALID_SIZE, f"Size must be between {low} and {high} pixels")
    if args.pattern_type not in PATTERN_TYPES:
        raise ImageOperationError(
            ErrorCode.INVALID_TYPE,
            f"Invalid type: {args.pattern_type}",
            hint=f"Valid types: {', '.join(PATTERN_TYPES)}",
        )
    if args.style and args.style not in PATTERN_STYLES:
        raise ImageOperationError(
            ErrorCode.INVALID_STYLE,
            f"Invalid style: {args.style}",
            hint=f"Valid styles: {', '.join(PATTERN_STYLES)}",
        )

    output = Path(args.output)
    resolve_save_format(output)

    provider = create_provider(config)
    formatter.progress(f"Generating {args.pattern_type} pattern with {provider.model}...")
    images = _generate(
        provider,
        formatter,
        build_pattern_prompt(prompt, args.pattern_type, args.style),
        ImageConfig(aspect_ratio=ratio_for_dims(width, height), count=1),
    )
    raw_path = save_generated(images[0], output.with_name(f".{output.name}{PATTERN_RAW_SUFFIX}"))
    try:
        result = transform_file(raw_path, output, TransformOptions(resize=f"{width}x{height}", fit="cover"))
    finally:
        raw_path.unlink(missing_ok=True)
    formatter.image_saved(str(output), result.width, result.height)

    formatter.success(
        "pattern",
        {
            "prompt": prompt,
            "model": provider.model,
            "type": args.pattern_type,
            "style": args.style or "",
            "size": args.size,
            "image": _image_entry(output, result.format, result.width, result.height),
        },
        _timing(started, provider),
    )
    return 0


def _handle_transform(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    started = time.monotonic()
    options = TransformOptions(
        resize=args.resize,
        fit=args.fit,
        crop=args.crop,
        rotate=args.rotate,
        flip=args.flip,
        flop=args.flop,
    )
    formatter.progress("Transforming image...")
    formatter.detail(f"operations={options.as_dict()}")
    result = transform_file(args.input, args.output, options)
    formatter.image_saved(args.output, result.width, result.height)
    formatter.success(
        "transform",
        {
            "input": args.input,
            "output": args.output,
            "image": _image_entry(args.output, result.format, result.width, result.height),
            "operations": options.as_dict(),
        },
        _timing(started),
    )
    return 0


def expand_inputs(patterns: list[str]) -> list[str]:
    paths: list[str] = []
    for pattern in patterns:
        matches = sorted(glob.glob(pattern))
        if matches:
            paths.extend(matches)
            continue
        if not Path(pattern).exists():
            raise ImageOperationError(ErrorCode.FILE_NOT_FOUND, f"Input file not found: {pattern}")
        paths.append(pattern)
    return paths


def _handle_combine(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    started = time.monotonic()
    inputs = expand_inputs(args.images)
    if len(inputs) < 2:
        raise ImageOperationError(
            ErrorCode.NOT_ENOUGH_IMAGES,
            "At least 2 images are required",
            hint="Provide multiple image paths or use glob patterns like *.png",
        )
    options = CombineOptions(
        direction=args.direction,
        gap=args.gap,
        columns=args.columns,
        align=args.align,
        background=args.background,
    )
    normalize_direction(options.direction)
    if options.gap < 0:
        raise ImageOperationError(ErrorCode.INVALID_GAP, "Gap cannot be negative")

    formatter.progress(f"Combining {len(inputs)} images ({options.direction})...")
    result = combine_files(inputs, args.output, options)
    formatter.image_saved(args.output, result.width, result.height)
    formatter.success(
        "combine",
        {
            "inputs": inputs,
            "output": args.output,
            "image": _image_entry(args.output, result.format, result.width, result.height),
            "options": options.as_dict(),
        },
        _timing(started),
    )
    return 0


def _handle_transparent_make(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    started = time.monotonic()
    output = Path(args.output) if args.output else default_output_path(args.input, args.overwrite)
    options = TransparencyOptions(color=args.color, tolerance=args.tolerance)
    formatter.progress(f"Removing {args.color} background...")
    result = make_transparent_file(args.input, output, options)
    formatter.image_saved(str(output), result.width, result.height)
    formatter.success(
        "transparent make",
        {
            "input": args.input,
            "output": str(output),
            "image": _image_entry(output, result.format, result.width, result.height),
            "options": {"color": args.color, "tolerance": args.tolerance},
        },
        _timing(started),
    )
    return 0


def _handle_transparent_inspect(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    started = time.monotonic()
    result = inspect_file(args.input)
    if formatter.json_mode:
        formatter.success(
            "transparent inspect",
            {"input": args.input, "results": result.as_dict()},
            _timing(started),
        )
        return 0
    lines = [
        f"Transparency Analysis: {args.input}",
        f"  Format:              {result.format}",
        f"  Dimensions:          {result.width}x{result.height}",
        f"  Has Alpha Channel:   {str(result.has_alpha_channel).lower()}",
        f"  Transparent Pixels:  {result.transparent_pixel_percent:.1f}%",
        f"  Dominant Background: {result.dominant_background_color}",
        "",
        f"  Recommendation: {result.recommendation}",
    ]
    print("\n".join(lines), file=formatter.stdout)
    return 0


def _handle_version(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    info = {
        "version": __version__,
        "python_version": platform.python_version(),
        "os": sys.platform,
        "arch": platform.machine(),
    }
    if formatter.json_mode:
        formatter.success("version", info)
        return 0
    print(f"nanobanana {info['version']}", file=formatter.stdout)
    print(f"  python:     {info['python_version']}", file=formatter.stdout)
    print(f"  platform:   {info['os']}/{info['arch']}", file=formatter.stdout)
    return 0


def run(args: argparse.Namespace, config: Config, formatter: Formatter) -> int:
    handler: Handler = args.handler
    try:
        return handler(args, config, formatter)
    except NanobananaError as exc:
        formatter.failure(args.command_name, exc)
        return 1


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "handler", None) is None:
        parser.print_help()
        raise SystemExit(1)
    config = load_config(args)
    formatter = Formatter(
        json_mode=config.json_mode,
        quiet=config.quiet,
        no_color=config.no_color,
        verbose=config.verbose,
    )
    raise SystemExit(run(args, config, formatter))


if __name__ == "__main__":
    main()
