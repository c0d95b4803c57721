"""Project root entry point for launching the web interface."""

from __future__ import annotations

import os


def main():
    from comax.web import create_app

    app = create_app()
    port = int(os.environ.get("COMAX_PORT", "5500"))
    app.run(host="0.0.0.0", port=port, debug=True)


if __name__ == "__main__":
    main()
