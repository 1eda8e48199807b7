#!/usr/bin/env python3
"""Profile StubHTML to find performance bottlenecks."""

import cProfile
import io
import pstats

from stubhtml import Template

# Sample template
template = """
<div class="container {{theme}}">
    <h1>{{title}}</h1>
    <ul>
        {{#items:i}}
        <li class="item" proxy-click="select:{{i}}">{{i}}: {{name}}<li>
        {{/items}}
    </ul>
    <table>
        <tr><td>Cell 1<td>Cell 2
        <tr><td>{{a}}</td><td>{{{b}}}</td></tr>
    </table>
    <svg viewbox="0 0 10 10"><lineargradient id="g"></lineargradient></svg>
    <rv-user-card user="{{user}}" intro="fade"></rv-user-card>
    <p>Static <em>content</em> with <a href="/x" title="a b">links</a></p>
</div>
""" * 100  # Repeat for more meaningful results

# Profile
pr = cProfile.Profile()
pr.enable()

for _ in range(10):
    result = Template(template)
    _ = result.to_json()

pr.disable()

# Print stats
s = io.StringIO()
ps = pstats.Stats(pr, stream=s).sort_stats("cumulative")
ps.print_stats(50)  # Top 50 functions
print(s.getvalue())
