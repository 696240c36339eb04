# curlcount/runtime/cli.py
from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from curlcount.common.config import configure_logging, get_settings
from curlcount.common.errors import CurlCountError
from curlcount.counter.samples import loads_samples
from curlcount.training.trainer import save_model, train_classifier

log = logging.getLogger(__name__)


def _train(args) -> int:
    up = loads_samples(Path(args.up).read_text(encoding="utf-8"))
    down = loads_samples(Path(args.down).read_text(encoding="utf-8"))
    model, report = train_classifier(up, down, seed=args.seed)
    out = save_model(model, Path(args.out) if args.out else get_settings().model_path)
    print(f"Total Samples: {report.total_samples}")
    print(f"UP Pose Samples: {report.up_samples}")
    print(f"DOWN Pose Samples: {report.down_samples}")
    print(f"Model Accuracy: {report.accuracy * 100:.2f}%")
    cm = report.confusion
    print(f"Confusion: TP={cm.true_positives} TN={cm.true_negatives} FP={cm.false_positives} FN={cm.false_negatives}")
    print(f"model saved to {out}")
    return 0


def _serve(args) -> int:
    import uvicorn
    uvicorn.run("curlcount.runtime.server:create_app", factory=True, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="curlcount", description="Bicep curl rep counter")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("train", help="train the up/down classifier from two exported pose files")
    t.add_argument("up", help="pose_data_up_*.json")
    t.add_argument("down", help="pose_data_down_*.json")
    t.add_argument("--out", default=None, help="model path (default: CURLCOUNT_MODEL_PATH)")
    t.add_argument("--seed", type=int, default=None)
    t.set_defaults(func=_train)

    s = sub.add_parser("serve", help="run the HTTP/websocket API")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=8000)
    s.set_defaults(func=_serve)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (CurlCountError, OSError) as e:
        print("Error:", e, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
