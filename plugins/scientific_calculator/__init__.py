"""Scientific Calculator plugin manifest."""

manifest = {
    "title": "Scientific Calculator",
    "summary": "Keypad calculator with shift/alpha layers, memory registers, degree/radian trig and numerical calculus.",
    "category": "General Utilities",
    "blueprint": "scientific_calculator",
}

__all__ = ["manifest"]
