"""
Groundwater simulation - entry point.

Usage:
    uv run python main.py
    uv run python main.py problem.nx=40 problem.ny=40
    uv run python main.py params.end_time=10 problem.specific_storage=1e-4
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import hydra
import mlflow
import pandas as pd
from dotenv import load_dotenv
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

log = logging.getLogger(__name__)


def get_experiment_name(cfg: DictConfig) -> str:
    """Build full experiment name with optional prefix."""
    name = cfg.experiment_name
    prefix = cfg.mlflow.get("project_prefix", "")
    if prefix and not name.startswith("/"):
        return f"{prefix}/{name}"
    return name


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = get_experiment_name(cfg)
    mlflow.set_experiment(experiment_name)
    return experiment_name


def run_simulation(cfg: DictConfig) -> str:
    """Run the simulation and log to MLflow. Returns run_id."""
    from cli import fail, header, ok, print_summary
    from disc import NewtonConvergenceError, Simulator

    problem = instantiate(cfg.problem, _convert_="all")
    params = instantiate(cfg.params)
    simulator = Simulator(problem, params)
    run_name = f"{problem.name}_{problem.nx}x{problem.ny}"

    with mlflow.start_run(run_name=run_name, tags={"problem": problem.name}) as run:
        mlflow.log_params(params.to_mlflow())
        mlflow.log_params({"nx": problem.nx, "ny": problem.ny})
        mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        header(f"Simulating {run_name}")
        try:
            simulator.run()
            ok(f"Reached t={simulator.time:.6g} in {simulator.metrics.time_steps} time steps")
        except NewtonConvergenceError as exc:
            fail(str(exc))
            simulator.metrics.converged = False

        mlflow.log_metrics(simulator.metrics.to_mlflow())

        with tempfile.TemporaryDirectory() as tmpdir:
            head = problem.pressure_to_head(simulator.model.solution(0)[:, 0])
            centers = problem.mesh.cell_centers
            head_path = Path(tmpdir) / "head.csv"
            pd.DataFrame({"x": centers[:, 0], "y": centers[:, 1], "head": head}).to_csv(head_path, index=False)
            mlflow.log_artifact(str(head_path))

            series_path = Path(tmpdir) / "time_series.csv"
            simulator.time_series.to_dataframe().to_csv(series_path, index=False)
            mlflow.log_artifact(str(series_path))

        print_summary("Run summary", simulator.metrics.to_dataframe().iloc[0].to_dict())
        log.info(
            f"Done: {simulator.metrics.newton_iterations} Newton iterations, "
            f"converged={simulator.metrics.converged}, time={simulator.metrics.wall_time_seconds:.2f}s"
        )
        return run.info.run_id


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    log.info(f"Problem: {cfg.problem._target_}, nx={cfg.problem.nx}, ny={cfg.problem.ny}")
    log.info(f"MLflow experiment: {setup_mlflow(cfg)}")
    run_simulation(cfg)


if __name__ == "__main__":
    main()
