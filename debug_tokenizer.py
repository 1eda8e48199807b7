#!/usr/bin/env python3
"""Debug script to inspect how a template is tokenized and compiled."""

import json
import sys
from pathlib import Path

from stubhtml import StructuralError, Template, Tokenizer, TokenizerOpts


def debug_template(source):
    print(f"Input: {source!r}")

    tokenizer = Tokenizer(TokenizerOpts(collect_errors=True))
    tokens = tokenizer.run(source)

    print("\nTokens:")
    for token in tokens:
        print(f"  {token!r}")

    if tokenizer.errors:
        print("\nTokenizer errors:")
        for error in tokenizer.errors:
            print(f"  {error}")

    print("\nBuild trace:")
    try:
        template = Template(source, collect_errors=True, debug=True)
        structured = template.to_json()
    except StructuralError as e:
        print(f"\n!!! REJECTED: {e} !!!")
        return

    print("\nStructured:")
    print(json.dumps(structured, indent=2))

    print("\nMarkup:")
    markup = template.to_markup()
    print(f"  {markup!r}")

    if template.errors:
        print("\nErrors:")
        for error in template.errors:
            print(f"  {error}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python debug_tokenizer.py <template-or-file>")
        print('Example: python debug_tokenizer.py "<ul><li>{{a}}<li>b</ul>"')
        sys.exit(1)

    arg = sys.argv[1]
    path = Path(arg)
    debug_template(path.read_text() if path.is_file() else arg)
