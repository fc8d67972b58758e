"""File-based template with a loop, a conditional and a type allow-list.

Only `EscapedString` values are displayed: ``another_variable`` and
``contact.email`` are plain strings and render as nothing. The compiled
artifact is written next to the template as ``templates/.users.html``.

Run:
    python app.py
"""

from pathlib import Path

from kiln import Environment, EscapedString

template_path = Path(__file__).parent / "templates" / "users.html"

variables = {
    "greeting": EscapedString("Hello world!"),
    "another_variable": "Lorem ipsum.",
    "contact": {
        "name": EscapedString("Sally Johnson"),
        "email": "sally@home.com",
    },
    "users": [
        {"name": EscapedString("Sally"), "email": EscapedString("sally@home.com")},
        {"name": EscapedString("Joe"), "email": EscapedString("joe@home.com")},
    ],
}

env = Environment(types={EscapedString})

# Regenerate the artifact on every run
output = env.render(template_path, variables=variables, always_recompile=True)


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
