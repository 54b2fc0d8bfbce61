import asyncio
import json
from pathlib import Path
from typing import Optional

from ..core.catalog import RuleCatalog
from ..core.config import get_cases_dir
from ..core.evaluator import evaluate
from ..core.models import Configuration, PullRequest
from ..logging import configure_logging, get_logger

logger = get_logger(__name__)

REPORT_PATH = Path("replay_report.md")


async def replay_one(case: dict, catalog: Optional[RuleCatalog] = None) -> dict:
    pull_request = PullRequest.model_validate(case["pull_request"])
    configuration = Configuration.model_validate(case["configuration"])
    expected = case["expected"]["approved"]

    verdict = await evaluate(pull_request, configuration, catalog=catalog)

    return {
        "case_id": case["case_id"],
        "title": pull_request.title,
        "expected": expected,
        "predicted": verdict.approved,
        "match": verdict.approved == expected,
        "reasons": verdict.reasons,
    }


def calculate_metrics(all_results: list) -> dict:
    total = len(all_results)
    correct = sum(1 for r in all_results if r["match"])
    # An approval that should not have happened is the costly mistake.
    false_accept = sum(1 for r in all_results if r["predicted"] and not r["expected"])
    false_reject = sum(1 for r in all_results if not r["predicted"] and r["expected"])

    return {
        "total": total,
        "correct": correct,
        "accuracy": correct / total if total > 0 else 0,
        "false_accept": false_accept,
        "false_reject": false_reject,
    }


def load_cases(cases_dir: Path) -> list:
    cases = []
    for cf in sorted(cases_dir.glob("*.json")):
        with open(cf, encoding="utf-8") as f:
            cases.append(json.load(f))
    return cases


def write_report(all_results: list, metrics: dict, report_path: Path) -> None:
    with open(report_path, "w", encoding="utf-8") as f:
        f.write("# Replay Report\n\n")
        f.write("## Metrics\n\n")
        f.write(f"- Total: {metrics['total']}\n")
        f.write(f"- Correct: {metrics['correct']}\n")
        f.write(f"- Accuracy: {metrics['accuracy']:.2%}\n")
        f.write(f"- False Accept: {metrics['false_accept']}\n")
        f.write(f"- False Reject: {metrics['false_reject']}\n\n")

        f.write("## Case Results\n\n")
        for r in all_results:
            status = "✓" if r["match"] else "✗"
            f.write(f"### {status} {r['case_id']}\n\n")
            f.write(f"- Title: \"{r['title']}\"\n")
            f.write(f"- Expected approved: {r['expected']}, Got: {r['predicted']}\n")
            for reason in r["reasons"]:
                f.write(f"  - {reason}\n")
            f.write("\n")


async def main(cases_dir: Optional[Path] = None, report_path: Path = REPORT_PATH) -> dict:
    cases_dir = cases_dir or get_cases_dir()
    all_results = [await replay_one(case) for case in load_cases(cases_dir)]
    metrics = calculate_metrics(all_results)
    write_report(all_results, metrics, report_path)
    logger.info("Report saved to %s", report_path)
    return metrics


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
