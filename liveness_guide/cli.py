import json
import logging
from typing import Optional

import typer
import uvicorn

from liveness_guide.active_checker import ActiveChecker
from liveness_guide.config import load_config
from liveness_guide.video_processor import extract_frames, get_video_info, sample_frames


app = typer.Typer(name="liveness-guide")


@app.command()
def api(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI service."""
    uvicorn.run("liveness_guide.main:app", host=host, port=port, reload=False)


@app.command()
def check(video_path: str, config_path: Optional[str] = None, verbose: bool = False):
    """Run the challenge sequence over a recorded video and print the result as JSON."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)
    cfg = load_config(config_path)

    try:
        info = get_video_info(video_path)
        frames = extract_frames(video_path)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)

    frames = sample_frames(frames, info["fps"], cfg.sampling.min_interval_ms)
    result = ActiveChecker(cfg).check(frames)
    typer.echo(json.dumps(result, indent=2))
    raise typer.Exit(code=0 if result["passed"] else 1)


if __name__ == "__main__":
    app()
