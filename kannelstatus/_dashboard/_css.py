"""CSS styles for the dashboard.

Plain, dense table styling: the page is a wall of numbers meant to be
read at a glance on an operations screen.
"""

CSS_STYLES = """
        :root {
            --bg: #ffffff;
            --text: #222233;
            --text-dim: #666677;
            --green: #107a2e;
            --red: #c0102a;
            --border: #c8c8d0;
            --link: #1a4fa0;
        }

        body {
            font-family: Verdana, Arial, Helvetica, sans-serif;
            background: var(--bg);
            color: var(--text);
            margin: 12px 20px;
        }

        h3 { margin: 0 0 8px 0; }
        h4 { margin: 20px 0 6px 0; }

        table { width: 100%; border-collapse: collapse; }
        td { vertical-align: top; padding: 3px 5px; }

        .text { font-size: 11px; }
        .right { text-align: right; }
        .center { text-align: center; }
        .nowrap { white-space: nowrap; }
        .dim { color: var(--text-dim); }

        .green { color: var(--green); }
        .red { color: var(--red); }

        a.href, a.href:visited { color: var(--link); text-decoration: none; }
        a.href:hover { text-decoration: underline; }

        .bord { border: 1px solid var(--border); padding: 4px; }
        .bord table td { border-bottom: 1px solid #eeeef2; }
        .traffic td { border: 1px solid var(--border); }

        hr { border: 0; border-top: 1px solid var(--border); margin: 3px 0; }

        .indent { padding-left: 36px; }
"""
