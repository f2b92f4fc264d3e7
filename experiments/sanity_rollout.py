# /experiments/sanity_rollout.py
"""
Sanity rollouts for ClimbEnv:
- Runs RANDOM and/or TINY-HEURISTIC climbers over fixed seeds
- Writes an episodes CSV (height climbed, fallbacks, patrols, questions)
- Optionally saves per-episode action sequences for exact reproduction

Usage examples (from repo root):
  # Both policies over 20 default seeds, save traces:
  python -m experiments.sanity_rollout --policies both --save-traces

  # Only heuristic, custom seeds, longer episodes:
  python -m experiments.sanity_rollout --policies heuristic --seeds 111,222,333 --time-limit 120

  # Questions from a running backend instead of the built-ins:
  python -m experiments.sanity_rollout --api-url http://localhost:5001/api
"""

from __future__ import annotations
import argparse
import csv
import logging
from pathlib import Path
from typing import List, Tuple, Optional

import numpy as np

from src.climb.questions import HttpQuestionProvider
from src.env.climb_env import ClimbEnv


# ------------------------ Policies ------------------------

def random_policy_init(action_seed: int):
    rng = np.random.RandomState(action_seed)
    def act(_obs: np.ndarray) -> int:
        return int(rng.randint(0, 6))
    return act

def tiny_heuristic_policy_init():
    """
    Very small rule on the nearest platform above (obs[4:7] = dx, rise, width):
      - grounded: jump, leaning toward the platform if it is off to a side
      - airborne: steer toward it
    """
    def act(obs: np.ndarray) -> int:
        grounded = obs[3] > 0.5
        dx = float(obs[4])
        if grounded:
            if dx > 0.02:
                return 5
            if dx < -0.02:
                return 4
            return 3
        if dx > 0.01:
            return 2
        if dx < -0.01:
            return 1
        return 0
    return act


# ------------------------ Rollout core ------------------------

def ensure_dir(p: Path):
    p.mkdir(parents=True, exist_ok=True)

def write_episode_row(csv_path: Path, header: List[str], row: List):
    exists = csv_path.exists()
    with csv_path.open("a", newline="") as f:
        w = csv.writer(f)
        if not exists:
            w.writerow(header)
        w.writerow(row)

def run_one_episode(policy_name: str,
                    seed: int,
                    frame_skip: int,
                    time_limit: float,
                    save_traces: bool,
                    out_dir: Path,
                    provider=None) -> Tuple[int, float, dict, bool, bool]:
    """
    Returns: (ep_len, ret_sum, last_info, terminated, truncated)
    Also writes the action trace to disk if requested.
    """
    env = ClimbEnv(frame_skip=frame_skip, time_limit_seconds=time_limit, question_provider=provider)

    if policy_name == "random":
        action_seed = 10_000 + seed
        policy = random_policy_init(action_seed)
    elif policy_name == "heuristic":
        action_seed = -1
        policy = tiny_heuristic_policy_init()
    else:
        raise ValueError("Unknown policy")

    actions: List[int] = []
    ret_sum = 0.0
    ep_len = 0
    term = trunc = False

    try:
        obs, info = env.reset(seed=seed)
        while not (term or trunc):
            a = policy(obs)
            actions.append(int(a))
            obs, r, term, trunc, info = env.step(a)
            ret_sum += float(r)
            ep_len += 1
    finally:
        env.close()

    if save_traces:
        trace_dir = out_dir / "traces" / policy_name
        ensure_dir(trace_dir)
        np.save(trace_dir / f"{seed}_actions.npy", np.asarray(actions, dtype=np.int8))
        meta_lines = [
            f"seed={seed}",
            f"frame_skip={frame_skip}",
            f"policy={policy_name}",
            f"action_rng_seed={action_seed}",
            f"time_limit={time_limit}",
        ]
        (trace_dir / f"{seed}_meta.txt").write_text("\n".join(meta_lines), encoding="utf-8")

    return ep_len, ret_sum, info, bool(term), bool(trunc)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--policies", type=str, default="both",
                    choices=["random", "heuristic", "both"],
                    help="Which policy to run")
    ap.add_argument("--seeds", type=str, default="",
                    help="Comma-separated seeds. If empty, uses 20 defaults: 101..120")
    ap.add_argument("--frame-skip", type=int, default=4,
                    help="Sim frames per decision step")
    ap.add_argument("--time-limit", type=float, default=60.0,
                    help="Episode length cap in simulated seconds")
    ap.add_argument("--out-dir", type=str, default="experiments/runs",
                    help="Directory to store episodes.csv and traces/")
    ap.add_argument("--api-url", type=str, default=None,
                    help="Question API base URL (omit to use the built-in questions)")
    ap.add_argument("--save-traces", action="store_true",
                    help="Save action sequences for replay")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    out_dir = Path(args.out_dir)
    ensure_dir(out_dir)

    if args.seeds.strip():
        seeds = [int(s) for s in args.seeds.split(",") if s.strip()]
    else:
        seeds = list(range(101, 121))

    provider: Optional[HttpQuestionProvider] = None
    if args.api_url:
        provider = HttpQuestionProvider(base_url=args.api_url)

    episodes_csv = out_dir / "episodes.csv"
    header = [
        "env_name", "policy_name", "seed", "frame_skip",
        "episode_len_decisions", "return_sum", "height_px",
        "terminated", "truncated", "death_cause",
        "live_platforms", "fallbacks", "patrols_spawned",
        "questions_answered", "correct_answers", "score",
    ]

    to_run = ["random", "heuristic"] if args.policies == "both" else [args.policies]

    print(f"Running policies={to_run} on {len(seeds)} seeds "
          f"(frame_skip={args.frame_skip}, time_limit={args.time_limit:.0f}s)")
    print(f"Writing summaries to {episodes_csv}")

    for policy_name in to_run:
        for seed in seeds:
            ep_len, ret_sum, info, terminated, truncated = run_one_episode(
                policy_name=policy_name,
                seed=seed,
                frame_skip=args.frame_skip,
                time_limit=args.time_limit,
                save_traces=args.save_traces,
                out_dir=out_dir,
                provider=provider,
            )

            row = [
                "ClimbEnv", policy_name, seed, args.frame_skip,
                ep_len, f"{ret_sum:.1f}", f"{info['height_px']:.1f}",
                int(terminated), int(truncated), (info["death_cause"] or ""),
                info["live_platforms"], info["fallbacks"], info["patrols_spawned"],
                info["questions_answered"], info["correct_answers"], info["score"],
            ]
            write_episode_row(episodes_csv, header, row)

            print(f"[{policy_name}] seed={seed}  len={ep_len}  height={info['height_px']:.0f}  "
                  f"ret={ret_sum:.1f}  term={terminated} trunc={truncated}  "
                  f"fallbacks={info['fallbacks']}  live={info['live_platforms']}")

    print("✓ Sanity rollouts complete")


if __name__ == "__main__":
    main()
