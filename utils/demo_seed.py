"""Demo complaints with signatures drawn through the signature surface."""
import math
import random
from typing import List, Tuple

from models import ComplaintRecord
from utils.signature_raster import replay_events, strokes_to_events

DEMO_USERS = ("Ayesha Khan", "Daniel Mensah", "Priya Raman", "Tomas Novak", "Lina Haddad")
DEMO_REPRESENTATIVES = ("Jane Smith", "Omar Farouk", "Chen Wei")
DEMO_SECTIONS = ("Cardiology", "Radiology", "Accounts", "Front Desk", "Pharmacy")
DEMO_PROBLEMS = (
    "Machine does not power on after the weekend shutdown.",
    "Paper jams on every second page, rollers look worn.",
    "Screen flickers and goes dark after a few minutes, cable checked.",
    "Keys stick and some letters do not register at all.",
)
DEMO_SOLUTIONS = (
    "Replaced the power supply unit and tested for thirty minutes.",
    "Cleaned and replaced the feed rollers, printed a test batch.",
    "Swapped the display cable and updated the graphics driver.",
    "Replaced the unit with a spare from stock.",
)


def _scribble(rng: random.Random, width: float, height: float) -> List[List[Tuple[float, float]]]:
    """A looping pen path across the pad, loosely shaped like a signature."""
    strokes: List[List[Tuple[float, float]]] = []
    x = width * 0.1
    baseline = height * 0.55
    for _ in range(rng.randint(2, 3)):
        stroke: List[Tuple[float, float]] = []
        span = width * rng.uniform(0.2, 0.3)
        amplitude = height * rng.uniform(0.12, 0.25)
        loops = rng.randint(2, 4)
        steps = 40
        for i in range(steps + 1):
            t = i / steps
            stroke.append((x + span * t, baseline - amplitude * math.sin(t * loops * 2 * math.pi)))
        strokes.append(stroke)
        x += span + width * 0.03
    return strokes


def draw_demo_signature(rng: random.Random, width: float, height: float, pixel_ratio: float) -> str:
    surface = replay_events(strokes_to_events(_scribble(rng, width, height)), width, height, pixel_ratio)
    return surface.value


def seed_demo_complaints(store, count: int, product_types, size: Tuple[float, float], pixel_ratio: float, seed: int = 7) -> List[ComplaintRecord]:
    """Append ``count`` demo complaints. Needs an app context for form validation."""
    from werkzeug.datastructures import MultiDict

    from routes.complaints import ComplaintForm  # Local import to avoid circular dependency

    rng = random.Random(seed)
    width, height = size
    created: List[ComplaintRecord] = []
    for _ in range(count):
        idx = rng.randrange(len(DEMO_PROBLEMS))
        fields = {
            "userName": rng.choice(DEMO_USERS),
            "roomNumber": str(rng.randint(100, 420)),
            "section": rng.choice(DEMO_SECTIONS),
            "productType": rng.choice(list(product_types)),
            "productSerialNumber": f"SN{rng.randint(10**8, 10**9 - 1)}",
            "problemDescription": DEMO_PROBLEMS[idx],
            "userSignature": draw_demo_signature(rng, width, height, pixel_ratio),
            "representativeName": rng.choice(DEMO_REPRESENTATIVES),
            "solution": DEMO_SOLUTIONS[idx],
            "representativeSignature": draw_demo_signature(rng, width, height, pixel_ratio),
        }
        form = ComplaintForm(formdata=MultiDict(fields), meta={"csrf": False})
        submission = form.validated_submission()
        if submission is None:
            raise ValueError(f"Demo complaint failed validation: {form.field_errors()}")
        created.append(store.append(submission))
    return created
