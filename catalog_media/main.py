import os
import sys
from typing import List, Optional

from catalog_media.extract_links import ProductFileError, extract_image_links, load_products, save_links
from catalog_media.download_images import add_download_options, run_download
from catalog_media.utils.cli import UsageArgumentParser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Extracts image links from a product JSON file and downloads them.
    """
    parser = UsageArgumentParser(
        prog="catalog-media",
        description="Extract product image links and mirror them into a local directory.",
    )
    parser.add_argument("json_path", help="Path to the product JSON array")
    parser.add_argument("output_dir", help="Directory to save images into")
    parser.add_argument("--links-out", help="Also write the extracted links to this file")
    add_download_options(parser)
    args = parser.parse_args(argv)

    if not os.path.isfile(args.json_path):
        print(f"File {args.json_path} not found!", file=sys.stderr)
        return 1

    print("=== Stage 1: Extracting links from JSON ===")
    try:
        products = load_products(args.json_path)
    except ProductFileError as e:
        print(f"Error processing JSON file: {e}", file=sys.stderr)
        return 1

    links = extract_image_links(products)
    print(f"Records processed: {len(products)}")
    print(f"Unique links found: {len(links)}")
    if args.links_out:
        save_links(links, args.links_out)
        print(f"Links saved to: {args.links_out}")

    if not links:
        print("No links found to download.")
        return 0

    print("\n=== Stage 2: Downloading images ===")
    run_download(links, args.output_dir, args)

    print("\n=== Done! ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
