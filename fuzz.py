#!/usr/bin/env python3
"""
Random fuzzer for the template compiler.
Generates malformed mustache/HTML templates to test compiler robustness.

A template may be rejected with StructuralError; any other exception is a
crash. Templates that render to markup are recompiled to check that the
markup form is stable.
"""

import argparse
import random
import string
import sys
import time
import traceback

TAGS = [
    "div", "span", "p", "a", "img", "table", "tbody", "tr", "td", "th", "ul", "ol", "li",
    "dl", "dt", "dd", "form", "input", "button", "select", "option", "optgroup", "textarea",
    "script", "style", "br", "hr", "h1", "h2", "pre", "code", "section", "article",
    "svg", "circle", "foreignObject", "linearGradient", "ruby", "rt", "rp", "em", "strong",
]

COMPONENTS = ["rv-widget", "rv-user-card", "RV-Modal", "rv-x"]

ATTRIBUTES = [
    "id", "class", "style", "href", "src", "title", "name", "value", "type",
    "onclick", "onload", "data-x", "aria-label", "disabled", "checked", "viewBox", "xlink:href",
]

DIRECTIVES = ["intro", "outro", "intro-outro", "decorator", "proxy-click", "on-tap", "proxy-submit"]

REFS = ["name", "items", "user.name", "list.0", ".", "this", "a.b.c", "x"]

SPECIAL_CHARS = [
    "\x00", "\x0b", "\x0c", "\x7f", "\u00a0", "\u2028", "\u200b", "\ufeff",
]


def random_string(min_len=0, max_len=20):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def random_whitespace():
    ws = [" ", "\t", "\n", "\r", "\f", ""]
    return "".join(random.choices(ws, k=random.randint(0, 5)))


def fuzz_mustache():
    """Generate well-formed and broken mustaches."""
    ref = random.choice(REFS)
    variants = [
        f"{{{{{ref}}}}}",
        f"{{{{{{{ref}}}}}}}",
        f"{{{{&{ref}}}}}",
        f"{{{{>{ref}}}}}",
        f"{{{{!{random_string()}}}}}",
        f"{{{{ {ref} }}}}",
        "{{}}",
        f"{{{{{ref}",  # Unterminated
        f"{{{{{ref}}}",
        f"{{{{/{ref}}}}}",  # Stray closing section
    ]
    return random.choice(variants)


def fuzz_section(depth=0):
    """Generate sections, sometimes with mismatched closers."""
    ref = random.choice(REFS)
    sigil = random.choice(["#", "#", "^"])
    opening = f"{{{{{sigil}{ref}}}}}"
    if sigil == "#" and random.random() < 0.3:
        opening = f"{{{{#{ref}:i}}}}"
    body = generate_body(depth + 1, random.randint(0, 3))
    closer = ref if random.random() < 0.9 else random.choice(REFS)
    if random.random() < 0.1:
        return opening + body
    return f"{opening}{body}{{{{/{closer}}}}}"


def fuzz_directive():
    """Generate directive attributes with static, JSON and dynamic arguments."""
    name = random.choice(DIRECTIVES)
    values = [
        random_string(1, 10),
        f"{random_string(1, 8)}:{random_string(0, 8)}",
        f"{random_string(1, 8)}:[1,2,3]",
        f"{random_string(1, 8)}:{{\"a\":1}}",
        f"{random_string(1, 8)}:NaN",
        f"select:{fuzz_mustache()}",
        f"{fuzz_mustache()}:{random_string()}",
        ":",
        "",
    ]
    value = random.choice(values)
    if random.random() < 0.1:
        return name
    return f'{name}="{value}"'


def fuzz_attribute():
    """Generate malformed attributes."""
    if random.random() < 0.3:
        return fuzz_directive()

    name_strategies = [
        lambda: random.choice(ATTRIBUTES),
        lambda: random_string(1, 15),
        lambda: "on" + random_string(2, 8),
        lambda: random.choice(SPECIAL_CHARS),
        lambda: "=",
        lambda: '"',
        lambda: "<",
    ]

    value_strategies = [
        lambda: random_string(0, 30),
        lambda: fuzz_mustache(),
        lambda: random_string() + fuzz_mustache() + random_string(),
        lambda: "&amp;&quot;&lt;",
        lambda: "a b  c",
        lambda: "`'=<>",
        lambda: "",
    ]

    quote_styles = [
        ('="', '"'),
        ("='", "'"),
        ("=", ""),
        ("", ""),
        ('="', ""),  # Unclosed quote
    ]

    name = random.choice(name_strategies)()
    value = random.choice(value_strategies)()
    quote_start, quote_end = random.choice(quote_styles)
    if not quote_start:
        value = ""
    return f"{name}{quote_start}{value}{quote_end}"


def fuzz_open_tag():
    """Generate malformed opening tags."""
    tag = random.choice(TAGS + COMPONENTS) if random.random() < 0.9 else random_string(1, 8)
    attrs = [fuzz_attribute() for _ in range(random.randint(0, 4))]
    attr_str = " ".join(attrs)
    closings = [">", ">", ">", "/>", " >", ""]
    return f"<{tag}{random_whitespace()} {attr_str}{random.choice(closings)}"


def fuzz_close_tag():
    tag = random.choice(TAGS + COMPONENTS)
    variants = [f"</{tag}>", f"</{tag} >", f"</{tag}", f"</{tag} x=1>", "</>", f"</ {tag}>"]
    return random.choice(variants)


def fuzz_element(depth=0):
    """Generate a (usually) balanced element."""
    tag = random.choice(TAGS + COMPONENTS)
    attrs = " ".join(fuzz_attribute() for _ in range(random.randint(0, 3)))
    body = generate_body(depth + 1, random.randint(0, 3))
    if random.random() < 0.15:
        return f"<{tag} {attrs}>{body}"
    return f"<{tag} {attrs}>{body}</{tag}>"


def fuzz_implicit_tags():
    """Generate lists and tables relying on implicit closing."""
    templates = [
        "<ul><li>one<li>two<li>{{three}}</ul>",
        "<dl><dt>a<dd>b<dt>c</dl>",
        "<table><tr><td>1<td>2<tr><td>3</table>",
        "<select><option>a<option>b<optgroup><option>c</select>",
        "<p>one<p>two<div>three</div>",
        "<ul>{{#items}}<li>{{.}}{{/items}}</ul>",
    ]
    return random.choice(templates)


def fuzz_text():
    variants = [
        random_string(1, 40),
        random_whitespace() + random_string() + random_whitespace(),
        "a < b > c",
        "{ not a mustache }",
        "}}",
        random.choice(SPECIAL_CHARS) * random.randint(1, 5),
    ]
    return random.choice(variants)


def fuzz_comment():
    variants = [
        f"<!--{random_string()}-->",
        f"<!--{fuzz_mustache()}-->",
        f"<!--{random_string()}",  # Unclosed
        f"<!{random_string()}>",
        f"<?{random_string()}>",
        "<!DOCTYPE html>",
        "<!doctype",
    ]
    return random.choice(variants)


def fuzz_raw_text():
    tag = random.choice(["script", "style"])
    content = random.choice(["if (a < b) {}", "</div>", "{{x}}", f"</{tag}", random_string()])
    return f"<{tag}>{content}</{tag}>"


def generate_body(depth, count):
    if depth > 6:
        return fuzz_text()
    parts = []
    for _ in range(count):
        generator = random.choices(
            [fuzz_text, fuzz_mustache, fuzz_element, fuzz_section, fuzz_open_tag, fuzz_close_tag],
            weights=[30, 20, 25, 15, 5, 5],
        )[0]
        if generator in (fuzz_element, fuzz_section):
            parts.append(generator(depth))
        else:
            parts.append(generator())
    return "".join(parts)


def generate_fuzzed_template():
    """Generate a complete fuzzed template."""
    parts = []

    num_parts = random.randint(1, 15)
    for _ in range(num_parts):
        generator = random.choices(
            [
                fuzz_text,
                fuzz_mustache,
                fuzz_section,
                fuzz_element,
                fuzz_open_tag,
                fuzz_close_tag,
                fuzz_comment,
                fuzz_raw_text,
                fuzz_implicit_tags,
            ],
            weights=[15, 15, 10, 25, 8, 6, 5, 3, 5],
        )[0]
        parts.append(generator())

    return "".join(parts)


def run_fuzzer(num_tests, seed=None, verbose=False, save_failures=False):
    """Compile fuzzed templates and report crashes, hangs and unstable markup."""
    from stubhtml import StructuralError, Template

    if seed is not None:
        random.seed(seed)

    crashes = []
    hangs = []
    unstable = []
    rejected = 0
    successes = 0

    print(f"Fuzzing stubhtml with {num_tests} test cases...")
    start_time = time.time()

    for i in range(num_tests):
        source = generate_fuzzed_template()

        if verbose and i % 100 == 0:
            print(f"  Test {i}/{num_tests}...")

        try:
            start = time.perf_counter()
            template = Template(source)
            template.to_json()
            Template(source, no_stringify=True).to_json()
            markup = template.to_markup()
            elapsed = time.perf_counter() - start

            if elapsed > 5.0:
                hangs.append({"test_num": i, "source": source, "time": elapsed})
                if verbose:
                    print(f"  HANG: Test {i} took {elapsed:.2f}s")
            else:
                successes += 1

            if markup:
                again = Template(markup).to_markup()
                if again != markup:
                    unstable.append({"test_num": i, "source": source, "markup": markup, "again": again})
                    if verbose:
                        print(f"  UNSTABLE: Test {i}")

        except StructuralError:
            rejected += 1
        except Exception as e:
            crashes.append({
                "test_num": i,
                "source": source,
                "error": str(e),
                "traceback": traceback.format_exc(),
            })
            if verbose:
                print(f"  CRASH: Test {i}: {e}")

    elapsed_total = time.time() - start_time

    print(f"\n{'=' * 60}")
    print("FUZZING RESULTS: stubhtml")
    print(f"{'=' * 60}")
    print(f"Total tests:    {num_tests}")
    print(f"Successes:      {successes}")
    print(f"Rejected:       {rejected}")
    print(f"Crashes:        {len(crashes)}")
    print(f"Hangs (>5s):    {len(hangs)}")
    print(f"Unstable:       {len(unstable)}")
    print(f"Total time:     {elapsed_total:.2f}s")
    print(f"Tests/second:   {num_tests / elapsed_total:.1f}")

    if crashes:
        print(f"\n{'=' * 60}")
        print("CRASH DETAILS:")
        print(f"{'=' * 60}")
        for crash in crashes[:10]:
            print(f"\nTest #{crash['test_num']}:")
            print(f"  Template: {crash['source'][:200]!r}...")
            print(f"  Error: {crash['error']}")
        if len(crashes) > 10:
            print(f"\n... and {len(crashes) - 10} more crashes")

    if unstable:
        print(f"\n{'=' * 60}")
        print("UNSTABLE MARKUP:")
        print(f"{'=' * 60}")
        for case in unstable[:5]:
            print(f"\nTest #{case['test_num']}:")
            print(f"  First:  {case['markup'][:200]!r}")
            print(f"  Second: {case['again'][:200]!r}")

    if hangs:
        print(f"\n{'=' * 60}")
        print("HANG DETAILS:")
        print(f"{'=' * 60}")
        for hang in hangs[:5]:
            print(f"\nTest #{hang['test_num']} ({hang['time']:.2f}s):")
            print(f"  Template: {hang['source'][:200]!r}...")

    if save_failures and (crashes or hangs or unstable):
        filename = f"fuzz_failures_stubhtml_{int(time.time())}.txt"
        with open(filename, "w") as f:
            f.write("Fuzzing results for stubhtml\n")
            f.write(f"Seed: {seed}\n\n")
            for crash in crashes:
                f.write(f"=== CRASH #{crash['test_num']} ===\n")
                f.write(f"Template:\n{crash['source']}\n")
                f.write(f"Error: {crash['error']}\n")
                f.write(f"Traceback:\n{crash['traceback']}\n\n")
            for case in unstable:
                f.write(f"=== UNSTABLE #{case['test_num']} ===\n")
                f.write(f"Template:\n{case['source']}\n")
                f.write(f"Markup:\n{case['markup']}\n")
                f.write(f"Recompiled:\n{case['again']}\n\n")
            for hang in hangs:
                f.write(f"=== HANG #{hang['test_num']} ({hang['time']:.2f}s) ===\n")
                f.write(f"Template:\n{hang['source']}\n\n")
        print(f"\nFailures saved to {filename}")

    return not crashes and not hangs and not unstable


def main():
    parser = argparse.ArgumentParser(description="Fuzz the template compiler with malformed input")
    parser.add_argument(
        "--num-tests", "-n",
        type=int,
        default=1000,
        help="Number of test cases to generate (default: 1000)",
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--save-failures",
        action="store_true",
        help="Save failures to a file",
    )
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Just print N sample fuzzed templates (no compiling)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed:
            random.seed(args.seed)
        for i in range(args.sample):
            print(f"=== Sample {i + 1} ===")
            print(generate_fuzzed_template())
            print()
        return

    success = run_fuzzer(
        args.num_tests,
        seed=args.seed,
        verbose=args.verbose,
        save_failures=args.save_failures,
    )

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
