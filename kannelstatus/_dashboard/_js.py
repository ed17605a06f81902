"""JavaScript for the dashboard.

Admin links carry the full command URL in their href; the script only asks
for confirmation before opening it. Link-count cells open an alert listing
the smsc-ids in that state.
"""

JS_ADMIN = """
        document.addEventListener('DOMContentLoaded', function () {
            document.querySelectorAll('a.admin').forEach(function (link) {
                link.addEventListener('click', function (event) {
                    event.preventDefault();
                    var command = link.dataset.command;
                    var target = link.dataset.target;
                    if (confirm('Send "' + command + '" to ' + target + '?')) {
                        window.open(link.href, 'kannel_admin');
                    }
                });
            });

            document.querySelectorAll('a.link-ids').forEach(function (link) {
                link.addEventListener('click', function (event) {
                    event.preventDefault();
                    alert('smsc-ids in ' + link.dataset.state + ' state are\\n\\n' + link.dataset.ids);
                });
            });
        });
"""
