#!/usr/bin/env python3
"""
EDIFACT ORDERS Command Line Tool

Generates EDIFACT ORDERS interchanges from JSON order files, or decodes a
generated interchange back into JSON for inspection.

Usage:
    python main.py order.json                              # Generate order.edi
    python main.py order.json output.edi                   # Generate to a specific file
    python main.py orders.json --profile-dir profiles --profile orders_d96a.json
    python main.py --decode output.edi                     # Print decoded fields as JSON
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Source modules live under src/ when running from a checkout
sys.path.insert(0, str(Path(__file__).parent / "src"))

from edifact_decoder import decode_orders
from orders_service import OrdersService


def generate_file(input_file: str, output_file: str, profile_dir: str, profile_name: str, partner_id: str) -> int:
    """Generate an ORDERS interchange from a JSON order (or list of orders)."""

    print(f"EDIFACT ORDERS - Processing {input_file}")
    print("=" * 50)

    with open(input_file, 'r') as f:
        order_data = json.load(f)

    service = OrdersService(profile_base_path=profile_dir)
    if isinstance(order_data, list):
        print(f"Batch input with {len(order_data)} orders")
        result = service.generate_batch(order_data, profile_name=profile_name, partner_id=partner_id)
    else:
        result = service.generate(order_data, profile_name=profile_name, partner_id=partner_id)

    if not result.ok:
        print("Generation failed:")
        for finding in result.findings:
            print(f"  {finding.code} - {finding.message}")
            if finding.details:
                print(f"  Details: {json.dumps(finding.details, indent=2, default=str)}")
        return 1

    with open(output_file, 'w', encoding='utf-8') as f:
        f.write(result.message)

    print(f"EDIFACT message written to: {output_file}")
    print(f"Segments: {len(result.message.splitlines())}")
    return 0


def decode_file(input_file: str) -> int:
    with open(input_file, 'r', encoding='utf-8') as f:
        content = f.read()
    print(json.dumps(decode_orders(content), indent=2))
    return 0


def main():
    """Main entry point with command line argument parsing."""

    parser = argparse.ArgumentParser(
        description="Generate EDIFACT ORDERS interchanges from JSON orders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py order.json                         # order.json -> order.edi
  python main.py orders.json batch.edi              # a JSON list becomes one batch interchange
  python main.py --decode batch.edi                 # inspect a generated interchange
        """
    )

    parser.add_argument('input_file', help='Input JSON order file, or EDIFACT file with --decode')
    parser.add_argument('output_file', nargs='?', help='Output EDIFACT file (default: input_file.edi)')
    parser.add_argument('--decode', action='store_true', help='Decode an EDIFACT file instead of generating one')
    parser.add_argument('--profile-dir', default='profiles', help='Directory holding JSON config profiles')
    parser.add_argument('--profile', help='Profile file name to use (default: built-in config)')
    parser.add_argument('--partner', help='Trading partner id for partner-specific profiles')
    parser.add_argument('--log-level', default='INFO', help='Logging level (default: INFO)')

    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s: %(message)s")

    if not Path(args.input_file).exists():
        print(f"Error: Input file not found: {args.input_file}")
        return 1

    if args.decode:
        return decode_file(args.input_file)

    if not args.output_file:
        args.output_file = str(Path(args.input_file).with_suffix('.edi'))

    try:
        return generate_file(args.input_file, args.output_file, args.profile_dir, args.profile, args.partner)
    except (OSError, ValueError) as e:
        print(f"Error during ORDERS generation: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
