"""Hello World -- the simplest kiln example.

Compile a template from a string and render it. Nothing is written to disk.

Run:
    python app.py
"""

from kiln import Environment, EscapedString

env = Environment(types={EscapedString})

# Compile-time variables decide which markup survives compilation
template = env.from_string("Hello, {{ name }}!", variables={"name": EscapedString("World")})

output = template.render(name=EscapedString("World"))


def main() -> None:
    print(output)
    print()

    for name in ["Kiln", "<script>", "Python"]:
        print(template.render(name=EscapedString(name)))


if __name__ == "__main__":
    main()
