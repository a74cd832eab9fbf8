"""
HTTP front end.

Serves the overview graph at `/` and the neighborhood of a single module at
`/?mod=<module>`. Adding `png` to the query string returns a PNG instead of
an SVG.
"""
import logging
import posixpath

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response
from rich.logging import RichHandler

from gomodgraph.__version__ import __version__
from gomodgraph.core.graph import DependencyGraph
from gomodgraph.core.render import OutputFormat, render
from gomodgraph.errors import RenderError


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def create_app(root_graph: DependencyGraph, registry_prefix: str) -> FastAPI:
    app = FastAPI(title="gomodgraph", version=__version__)

    # The root graph is shared by all requests and never modified
    app.state.root_graph = root_graph
    app.state.registry_prefix = registry_prefix

    def render_and_reply(graph: DependencyGraph, as_png: bool) -> Response:
        fmt = OutputFormat.PNG if as_png else OutputFormat.SVG

        # Rendered completely before replying, so a failure never ends up in a half-sent body
        try:
            content = render(graph, registry_prefix, fmt)
        except RenderError as e:
            logging.error(f"Failed to serve request: {e}")
            raise HTTPException(status_code=500, detail="Failed to render graph") from e

        return Response(content=content, media_type=fmt.media_type)

    @app.get("/")
    def serve_graph(request: Request, mod: str = "") -> Response:
        as_png = "png" in request.query_params

        if not mod:
            logging.info("Serving overview graph")
            return render_and_reply(root_graph, as_png)

        center = root_graph.lookup(mod)
        if center is None:
            # Allow omitting the registry when stating a module. Collisions are
            # unlikely as all modules come from the same GitLab instance.
            center = root_graph.lookup(posixpath.join(registry_prefix, mod))

        if center is None:
            raise HTTPException(status_code=400, detail=f'"{mod}" is not a known module.')

        logging.info(f"Serving graph for module: {center.name}")
        return render_and_reply(root_graph.subgraph_from(center), as_png)

    @app.get("/health")
    def health() -> dict:
        return {"status": "healthy", "modules": len(root_graph)}

    return app
