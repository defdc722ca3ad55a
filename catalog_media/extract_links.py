"""
Extracts product image links from a catalog JSON dump.

Reads a JSON array of product records and collects every image URL found
under ``imageLinks[*].{big,thumb,basic,small}`` and ``colorsProduct[*].pathImgBig``.
The result keeps first-seen order with duplicates removed and is written as a
plain text file, one URL per line.
"""
import os
import sys
import json
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import catalog_media.utils.config as constants
from catalog_media.utils.cli import UsageArgumentParser


class ProductFileError(Exception):
    """Raised when the product JSON cannot be read or has the wrong shape."""


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _iter_record_links(record: Any) -> Iterable[str]:
    if not isinstance(record, Mapping):
        return

    image_links = record.get(constants.IMAGE_LINKS_FIELD)
    if _is_sequence(image_links):
        for image_link in image_links:
            if not isinstance(image_link, Mapping):
                continue
            for key in constants.IMAGE_LINK_KEYS:
                value = image_link.get(key)
                if value and isinstance(value, str):
                    yield value

    colors = record.get(constants.COLORS_FIELD)
    if _is_sequence(colors):
        for color in colors:
            if not isinstance(color, Mapping):
                continue
            value = color.get(constants.COLOR_IMAGE_KEY)
            if value and isinstance(value, str):
                yield value


def extract_image_links(records: Iterable[Any]) -> List[str]:
    """
    Collect unique image URLs from product records.
    Args:
        records: product mappings; malformed entries are skipped
    Returns:
        URLs in order of first occurrence, no empty strings, no duplicates
    """
    seen = set()
    links: List[str] = []
    for record in records:
        for link in _iter_record_links(record):
            if link not in seen:
                seen.add(link)
                links.append(link)
    return links


def load_products(json_path: str) -> list:
    """Load the product array from a JSON file."""
    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ProductFileError(f"Cannot read {json_path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProductFileError(f"Invalid JSON in {json_path}: {e}") from e

    if not isinstance(data, list):
        raise ProductFileError(
            f"Expected a JSON array of products in {json_path}, got {type(data).__name__}"
        )
    return data


def save_links(links: Sequence[str], output_path: str):
    """Write links to a text file, one per line."""
    parent = os.path.dirname(output_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8', newline='\n') as f:
        f.write('\n'.join(links))


def read_links(links_path: str) -> List[str]:
    """Read a URL list file. Blank lines are ignored."""
    with open(links_path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def run(json_path: str, output_path: Optional[str] = None) -> List[str]:
    """Extract links from ``json_path`` and save them to ``output_path``."""
    output_path = output_path or constants.LINKS_FILE
    products = load_products(json_path)
    links = extract_image_links(products)
    save_links(links, output_path)

    print(f"Records processed: {len(products)}")
    print(f"Unique links found: {len(links)}")
    print(f"Links saved to: {output_path}")
    return links


def main(argv: Optional[List[str]] = None) -> int:
    parser = UsageArgumentParser(
        prog="extract-image-links",
        description="Extract product image links from a catalog JSON file.",
    )
    parser.add_argument("json_path", help="Path to the product JSON array")
    parser.add_argument(
        "output_path",
        nargs="?",
        default=constants.LINKS_FILE,
        help=f"Output text file (default: {constants.LINKS_FILE})",
    )
    args = parser.parse_args(argv)

    if not os.path.isfile(args.json_path):
        print(f"File {args.json_path} not found!", file=sys.stderr)
        return 1

    try:
        run(args.json_path, args.output_path)
    except ProductFileError as e:
        print(f"Error processing file: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
