"""
Entry point for the WordPress to Sanity migration preparation.
"""

import argparse
import glob
import os

from wp2sanity.migration_tool import SanityMigrationTool

CONFIG_FILE = "config/migration_config.json"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prepare WordPress exports for import into Sanity."
    )
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to the JSON configuration file")
    parser.add_argument("--docs", default="docs/", help="Directory holding .csv / .xml exports")
    parser.add_argument("--media-root", help="Local copy of wp-content/uploads")
    parser.add_argument("--output", help="Path of the migration artifact")
    parser.add_argument("--limit", type=int, help="Process at most this many records")
    parser.add_argument("--workers", type=int, help="Number of worker threads")
    parser.add_argument("--dry-run", action="store_true", help="Do not write the migration artifact")
    parser.add_argument(
        "--treat-pages-as-posts", action="store_true", help="Convert pages into post documents"
    )
    return parser.parse_args()


def main():
    """
    Main function to run the WordPress to Sanity migration preparation.
    """
    args = parse_args()
    tool = SanityMigrationTool(config_file=args.config)
    migration = tool.config["migration"]
    if args.media_root:
        migration["media_root"] = args.media_root
    if args.output:
        migration["output_file"] = args.output
    if args.limit is not None:
        migration["limit"] = args.limit
    if args.workers:
        migration["workers"] = args.workers
    if args.dry_run:
        migration["dry_run"] = True
    if args.treat_pages_as_posts:
        migration["treat_pages_as_posts"] = True

    tool.log_message("Starting WordPress to Sanity migration preparation.")

    # Dynamically find export files in the docs directory
    csv_files = sorted(glob.glob(os.path.join(args.docs, "*.csv")))
    xml_files = sorted(glob.glob(os.path.join(args.docs, "*.xml")))
    tool.log_message(f"Discovered CSV files: {csv_files}", level="DEBUG")
    tool.log_message(f"Discovered XML files: {xml_files}", level="DEBUG")

    if not csv_files and not xml_files:
        tool.log_message(
            f"No WordPress export files (.csv or .xml) found in '{args.docs}' directory.",
            level="ERROR",
        )
        return

    posts = []
    for csv_path in csv_files:
        posts.extend(tool.extract_posts(csv_path=csv_path))

    # Records present in both a CSV and an XML export are kept once
    seen = {(p.post_type, p.id or p.post_title) for p in posts}
    for xml_path in xml_files:
        for post in tool.extract_posts(xml_path=xml_path):
            key = (post.post_type, post.id or post.post_title)
            if key not in seen:
                seen.add(key)
                posts.append(post)

    if not posts:
        tool.log_message("No posts found in any of the export files.", level="ERROR")
        return

    tool.log_message(f"Found a total of {len(posts)} records in the exports.")
    result = tool.prepare_migration(posts)
    tool.log_message(
        f"Migration prepared: {result.post_count} posts, {result.page_count} pages, "
        f"{len(result.missing_media)} missing media files."
    )


if __name__ == "__main__":
    main()
