import sys
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.clm import create_app
from app.clm.modules.blueprints.service import create_blueprint


SAMPLE_BLUEPRINTS = [
    {
        "name": "Service Agreement",
        "fields": [
            {"type": "text", "label": "Client Name", "position": {"x": 10, "y": 15}},
            {"type": "date", "label": "Effective Date", "position": {"x": 10, "y": 30}},
            {"type": "checkbox", "label": "Terms Accepted", "position": {"x": 10, "y": 70}},
            {"type": "signature", "label": "Client Signature", "position": {"x": 10, "y": 85}},
        ],
    },
    {
        "name": "Non-Disclosure Agreement",
        "fields": [
            {"type": "text", "label": "Disclosing Party", "position": {"x": 10, "y": 15}},
            {"type": "text", "label": "Receiving Party", "position": {"x": 55, "y": 15}},
            {"type": "signature", "label": "Signature", "position": {"x": 10, "y": 85}},
        ],
    },
]


def seed_only() -> None:
    """
    Seed sample blueprints in an idempotent way (matched by name).
    Does NOT modify existing blueprints.
    """
    app = create_app()
    blueprints = app.extensions["clm_blueprints"]
    existing = {b.name for b in blueprints.all()}

    created = 0
    for payload in SAMPLE_BLUEPRINTS:
        if payload["name"] in existing:
            continue
        create_blueprint(blueprints, payload)
        created += 1

    print(f"Initialized storage (seed_only). Sample blueprints created: {created}")


def main() -> None:
    seed_only()


if __name__ == "__main__":
    main()
