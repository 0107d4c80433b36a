# scripts/test/simulate_scan.py
"""Send test scans to the backend, as a gate reader would (JSON or bare text body)."""

import argparse
import requests

BACKEND_URL = "http://localhost:8080/api/v1/rfid/scan"


def simulate_json(url, tag, scan_type, direction, battery, signal):
    payload = {
        "tagId": tag,
        "scanType": scan_type,
        "direction": direction,
        "systemStatus": "online",
        "batteryLevel": battery,
        "signalStrength": signal,
        "metadata": {"reader": "SIM-GATE-01"},
    }
    resp = requests.post(url, json=payload, timeout=10)
    print(f"{'✅' if resp.ok else '⛔'} JSON scan tag={tag} → HTTP {resp.status_code}: {resp.json()}")


def simulate_text(url, tag):
    resp = requests.post(url, data=tag.encode(), headers={"Content-Type": "text/plain"}, timeout=10)
    print(f"{'✅' if resp.ok else '⛔'} text scan tag={tag} → HTTP {resp.status_code}: {resp.json()}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate RFID gate scans for testing")
    parser.add_argument("--url", default=BACKEND_URL)
    parser.add_argument("--tag", default="TAG-99")
    parser.add_argument("--mode", default="json", choices=["json", "text"])
    parser.add_argument("--scan-type", default="entry",
                        choices=["entry", "exit", "checkpoint", "registration", "validation"])
    parser.add_argument("--direction", default="in", choices=["in", "out", "both"])
    parser.add_argument("--battery", type=float, default=87.5)
    parser.add_argument("--signal", type=float, default=-61.0)
    args = parser.parse_args()

    if args.mode == "text":
        simulate_text(args.url, args.tag)
    else:
        simulate_json(args.url, args.tag, args.scan_type, args.direction, args.battery, args.signal)
