import webbrowser

from . import create_app


def main() -> None:
    app = create_app()
    port = app.config["PORT"]
    home_url = f"http://localhost:{port}"
    app.logger.info("Starting your app on %s", home_url)
    if app.config.get("OPEN_BROWSER"):
        webbrowser.open(home_url)
    # The reloader would run create_app and open the browser a second time.
    app.run(port=port, debug=app.config.get("DEBUG", False), use_reloader=False)


if __name__ == "__main__":
    main()
