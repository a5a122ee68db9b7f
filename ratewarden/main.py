from ratewarden.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Serve the app with uvicorn on localhost:8000."""
    import uvicorn

    uvicorn.run("ratewarden.main:app", host="127.0.0.1", port=8000)
