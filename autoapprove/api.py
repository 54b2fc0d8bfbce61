from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .core.catalog import load_catalog
from .core.errors import ConfigurationError
from .core.evaluator import evaluate
from .core.models import Configuration, PullRequest, Verdict

app = FastAPI(title="Auto-Approve Gate")


class EvaluateRequest(BaseModel):
    pull_request: PullRequest
    configuration: Configuration


@app.post("/evaluate", response_model=Verdict)
async def evaluate_pr(req: EvaluateRequest) -> Verdict:
    """
    Decide whether a pull request may be auto-approved.

    Returns a Verdict with:
    - approved: the decision
    - reasons: one entry per failing check, in evaluation order
    - checks: every check that ran
    """
    try:
        return await evaluate(req.pull_request, req.configuration)
    except ConfigurationError as e:
        # The rule catalog is broken; no decision can be made.
        raise HTTPException(
            status_code=500,
            detail=f"System configuration error: {str(e)}"
        ) from e


@app.get("/catalog")
async def catalog():
    """Version and process tags of the loaded rule catalog."""
    try:
        loaded = load_catalog()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=f"System configuration error: {str(e)}") from e
    return {
        "version": loaded.version,
        "ecosystems": list(loaded.ecosystems),
        "processes": loaded.processes(),
    }
