# cli.py
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .controller import PersonaController
from .models import GeneratedBatch, ImageBlob, LoadingState, ProductData
from .product_loader import load_product
from .rendering import batch_to_dict, render_batch_text, save_data_uri_image, slugify


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate Meta ad personas for a product with Gemini."
    )
    parser.add_argument(
        "--product",
        type=Path,
        help="Path to a product YAML or JSON file.",
    )
    parser.add_argument(
        "--analyze-url",
        help="Product page URL to auto-fill details from before generating.",
    )
    parser.add_argument(
        "--image",
        type=Path,
        help="Optional product image, used for analysis and persona generation.",
    )
    parser.add_argument(
        "--output",
        required=True,
        type=Path,
        help="Directory where personas.json, personas.txt and visuals are written.",
    )
    parser.add_argument(
        "--visuals",
        action="store_true",
        help="Also generate one image per persona from its creative concept.",
    )
    parser.add_argument(
        "--log",
        required=False,
        type=Path,
        help="Optional path to a log file.",
    )

    argv = sys.argv[1:] if argv is None else argv
    # Show the help screen rather than a missing argument error.
    if not argv:
        parser.print_help(sys.stderr)
        sys.exit(1)

    args = parser.parse_args(argv)
    if args.product is None and not args.analyze_url and args.image is None:
        parser.error("one of --product, --analyze-url or --image is required")
    return args


def configure_logging(log_path: Path | None) -> None:
    """Log to stderr and, when asked, to a file as well."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        handlers=handlers,
    )


def write_outputs(output_root: Path, batch: GeneratedBatch) -> None:
    output_root.mkdir(parents=True, exist_ok=True)

    json_path = output_root / "personas.json"
    json_path.write_text(
        json.dumps(batch_to_dict(batch), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    text_path = output_root / "personas.txt"
    text_path.write_text(render_batch_text(batch), encoding="utf-8")
    logging.info("Wrote %s and %s", json_path, text_path)


async def run(args: argparse.Namespace) -> int:
    product = load_product(args.product) if args.product else ProductData()
    if args.image is not None:
        product.image = ImageBlob(source=args.image)

    controller = PersonaController(product=product)

    if args.analyze_url or (args.product is None and args.image is not None):
        logging.info("Analyzing product from %s", args.analyze_url or args.image)
        await controller.analyze(url=args.analyze_url)
        if controller.analyze_error:
            logging.warning("%s", controller.analyze_error)

    personas = await controller.submit()
    if controller.state == LoadingState.ERROR:
        logging.error("%s", controller.error)
        return 1

    batch = GeneratedBatch(personas=personas)
    write_outputs(args.output, batch)

    if args.visuals:
        for persona in personas:
            data_uri = await controller.generate_visual(persona.persona_id)
            if data_uri is None:
                logging.warning(
                    "No visual for %s: %s",
                    persona.persona_id,
                    controller.visual_errors.get(persona.persona_id),
                )
                continue
            try:
                save_data_uri_image(data_uri, args.output / f"{slugify(persona.persona_id)}.png")
            except ValueError as exc:
                logging.warning("No visual for %s: %s", persona.persona_id, exc)

    logging.info("Persona generation complete: %d personas.", len(personas))
    return 0


def main(argv=None) -> None:
    """
    Entry point for the CLI module.

    - Loads the product file and/or auto-fills it from a URL or image.
    - Generates the persona batch.
    - Writes JSON, a text summary and, optionally, one visual per persona.
    """
    args = parse_args(argv)
    configure_logging(args.log)
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
