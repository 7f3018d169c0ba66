#!/usr/bin/env python3
"""
Send a notification through the running API.

Usage:
    python scripts/send_notification.py "Title" "Body" --users P1 P2
    python scripts/send_notification.py "Title" "Body" --branches B1 --placements Push

Environment Variables:
    SENDER_PS_ID: PS id the request is sent as
    API_URL: Base API URL (default: http://localhost:8000)
"""

import argparse
import json
import os
import sys

import dotenv
import requests

dotenv.load_dotenv()

PLACEMENTS = ["Push", "Dashboard", "UserQueue", "Prerequisite"]


def send_notification(payload: dict) -> dict:
    """Post a notification request and return the API response."""
    sender_ps_id = os.getenv("SENDER_PS_ID")
    if not sender_ps_id:
        print("Error: SENDER_PS_ID environment variable not set", file=sys.stderr)
        sys.exit(1)

    api_url = os.getenv("API_URL", "http://localhost:8000")
    url = f"{api_url}/api/v1/notifications"

    headers = {
        "X-User-Ps-Id": sender_ps_id,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(url, json=payload, headers=headers, timeout=30)
        response.raise_for_status()
        return response.json()
    except requests.exceptions.HTTPError as e:
        print(f"HTTP Error: {e}", file=sys.stderr)
        print(f"Response: {e.response.text}", file=sys.stderr)
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"Request Error: {e}", file=sys.stderr)
        sys.exit(1)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Send a notification to employees or branches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Push and inbox entry for two employees
  python send_notification.py "Shift update" "Your shift moved" --users P1 P2 \\
      --placements Push UserQueue --priority High --visibility Individual

  # Push to every field staff member of a branch
  python send_notification.py "Branch news" "Office closed Friday" --branches B1
        """,
    )

    parser.add_argument("title", help="Notification title")
    parser.add_argument("body", help="Notification body")
    parser.add_argument("--users", nargs="*", default=None, help="Recipient PS ids")
    parser.add_argument("--branches", nargs="*", default=None, help="Recipient branch ids")
    parser.add_argument(
        "--placements",
        nargs="+",
        default=["Push"],
        choices=PLACEMENTS,
        help="Delivery placements (default: Push)",
    )
    parser.add_argument(
        "--type",
        default="Individual",
        choices=["Individual", "Group", "Global"],
        help="Notification type (default: Individual)",
    )
    parser.add_argument(
        "--origin",
        default="System",
        choices=["Alert", "Polls", "System"],
        help="Notification origin (default: System)",
    )
    parser.add_argument("--priority", choices=["Highest", "High", "Medium", "Low"])
    parser.add_argument(
        "--visibility",
        choices=["National", "Branch", "Division", "Province", "Individual"],
    )
    parser.add_argument("--expires-at", help="ISO 8601 expiry date")
    parser.add_argument("--screen", help="Deeplink screen name")
    parser.add_argument(
        "--screen-props",
        type=str,
        help='Deeplink screen props as JSON string (e.g., \'{"id":"123"}\')',
    )

    args = parser.parse_args()

    screen_props = None
    if args.screen_props:
        try:
            screen_props = json.loads(args.screen_props)
        except json.JSONDecodeError as e:
            print(f"Error: Invalid JSON in --screen-props: {e}", file=sys.stderr)
            sys.exit(1)

    payload = {
        "title": args.title,
        "body": args.body,
        "placements": args.placements,
        "notification_type": args.type,
        "origin": args.origin,
        "priority": args.priority,
        "visibility": args.visibility,
        "expires_at": args.expires_at,
        "user_ps_ids": args.users,
        "branch_ids": args.branches,
        "redirection_screen": args.screen,
        "redirection_screen_props": screen_props,
    }

    result = send_notification({key: value for key, value in payload.items() if value is not None})

    print("Notification sent successfully!")
    print(f"   Notification id: {result['notification_id']}")


if __name__ == "__main__":
    main()
