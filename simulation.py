# =============================================================================
# SIMULATION - Layer Coordinator
# =============================================================================
# Runs goal inference against a simulated crowd, coordinating:
# - L3: Crowd Layer (plaza, pedestrians with hidden goals, VO navigation)
# - L4: Intent Layer (hypotheses, likelihood, belief update)
#
# Prints the evolving beliefs and, with --log_dir, saves the belief history
# (CSV), goal recognition metrics (JSON) and the final belief state (JSON).
# =============================================================================

import sys
import os
import argparse
import logging
import json
from datetime import datetime

sys.stdout.reconfigure(encoding='utf-8')

# Layer imports
from L3_crowd import (
    CrowdWorld,
    CrowdSimulationOracle,
    SCENARIOS,
    load_scenario,
    DEFAULT_DT,
    DEFAULT_SIMULATION_STEPS,
    OBSERVATION_NOISE_STD
)
from L4_intent import (
    BeliefHistory,
    GoalInferenceEngine,
    InferenceConfig,
    ModelHypotheses
)
from L4_intent.config import (
    MAX_ACCELERATION,
    LIKELIHOOD_MODEL,
    MAX_MISSED_CYCLES
)


# =============================================================================
# Scientific Metrics (for evaluation)
# =============================================================================
class InferenceMetrics:
    """Goal recognition metrics computed from the belief history."""

    def __init__(self, history: BeliefHistory, true_goals: dict):
        self.history = history
        self.true_goals = true_goals

    def compute_metrics(self) -> dict:
        metrics = {}
        if len(self.history) == 0:
            return metrics

        metrics['goal_recognition_accuracy'] = self.history.accuracy(self.true_goals)

        best = self.history.most_likely()
        best = best[best['agent_id'].isin(list(self.true_goals.keys()))]
        if not best.empty:
            final = best.sort_values('cycle').groupby('agent_id').tail(1)
            correct = final['goal_id'] == final['agent_id'].map(self.true_goals)
            metrics['final_accuracy'] = {
                'overall': float(correct.mean()),
                'agents': int(len(final)),
                'correct': int(correct.sum())
            }

        df = self.history.to_dataframe()
        truth = df['agent_id'].map(self.true_goals)
        on_truth = df[df['goal_id'] == truth]
        if not on_truth.empty:
            metrics['true_goal_probability'] = {
                'mean': float(on_truth['probability'].mean()),
                'min': float(on_truth['probability'].min()),
                'max': float(on_truth['probability'].max())
            }

        cycles = df.drop_duplicates(['cycle', 'agent_id'])
        metrics['degenerate_updates'] = int(cycles['degenerate'].sum())
        metrics['clamped_entries'] = int(df['clamped'].sum())
        return metrics

    def export_to_json(self, filename: str) -> dict:
        metrics = self.compute_metrics()
        output = {
            'timestamp': datetime.now().isoformat(),
            'metrics': metrics
        }
        with open(filename, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False, default=str)
        return metrics


# =============================================================================
# Simulation Controller
# =============================================================================
class SimulationController:
    """
    Main controller that coordinates the two layers.
    """

    def __init__(self, scenario: str = 'crossing', config: InferenceConfig = None,
                 dt: float = DEFAULT_DT, steps: int = DEFAULT_SIMULATION_STEPS,
                 noise_std: float = OBSERVATION_NOISE_STD, seed: int = None,
                 print_every: int = 10):
        self.scenario = scenario
        self.steps = steps
        self.print_every = print_every

        # L3: Crowd Layer
        self.world = CrowdWorld(dt=dt, noise_std=noise_std, seed=seed)
        goal_config = load_scenario(self.world, scenario)

        # L4: Intent Layer
        self.oracle = CrowdSimulationOracle(navigator=self.world.navigator)
        self.engine = GoalInferenceEngine(
            config if config is not None else InferenceConfig(cycle_period=dt),
            self.oracle,
            feed=self.world,
            hypotheses=ModelHypotheses(goals=goal_config)
        )
        self.history = BeliefHistory()

        print(f"  Scenario: {scenario.upper()}")
        print(f"  Pedestrians: {len(self.world.pedestrians)}")
        print(f"  Likelihood: {self.engine.config.likelihood_model} "
              f"(sigma={self.engine.config.velocity_sigma:.3f} m/s)")

    def step(self) -> dict:
        world_state = self.world.update()
        reports = self.engine.step()
        self.history.record(reports.values())
        return {
            'frame': world_state['frame'],
            'reports': reports,
            'departed': world_state['departed']
        }

    def run(self):
        print(f"\n{'='*60}")
        print(f"Running {self.steps} steps")
        print(f"{'='*60}\n")

        truth = self.world.get_ground_truth()
        for _ in range(self.steps):
            state = self.step()
            for agent_id in state['departed']:
                print(f"[{state['frame']:4d}] Pedestrian {agent_id} reached goal {truth[agent_id]}")

            if self.print_every and state['frame'] % self.print_every == 0:
                for agent_id, report in sorted(state['reports'].items()):
                    best = report.most_likely_goal()
                    print(f"[{state['frame']:4d}] Agent {agent_id}: goal {best} "
                          f"p={report.probabilities[best]:.3f} (true {truth[agent_id]})"
                          f"{' DEGENERATE' if report.degenerate else ''}")

            if self.world.is_empty:
                print(f"[{state['frame']:4d}] All pedestrians left the plaza")
                break

    def save_logs(self, base_log_dir: str) -> dict:
        """Saves logs and metrics to files in organized subfolders."""
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

        belief_log_dir = os.path.join(base_log_dir, "belief_log")
        metrics_dir = os.path.join(base_log_dir, "scientific_metrics")
        state_dir = os.path.join(base_log_dir, "system_state")

        for directory in [belief_log_dir, metrics_dir, state_dir]:
            os.makedirs(directory, exist_ok=True)

        # CSV - Belief Log
        if len(self.history):
            df = self.history.to_dataframe()
            csv_file = os.path.join(
                belief_log_dir,
                f"belief_log_{self.scenario}_{timestamp}.csv"
            )
            df.to_csv(csv_file, index=False, encoding='utf-8')
            print(f"Log saved: {csv_file}")

        # JSON - Scientific Metrics
        json_file = os.path.join(
            metrics_dir,
            f"scientific_metrics_{self.scenario}_{timestamp}.json"
        )
        metrics = InferenceMetrics(self.history, self.world.get_ground_truth()).export_to_json(json_file)
        print(f"Metrics saved: {json_file}")

        # JSON - System State
        state_file = os.path.join(
            state_dir,
            f"system_state_{self.scenario}_{timestamp}.json"
        )
        state = {
            'statistics': self.engine.get_statistics(),
            'beliefs': self.engine.export_state()
        }
        with open(state_file, 'w', encoding='utf-8') as f:
            json.dump(state, f, indent=2, ensure_ascii=False, default=str)
        print(f"System state saved: {state_file}")
        return metrics

    def print_summary(self, metrics: dict = None):
        if metrics is None:
            metrics = InferenceMetrics(self.history, self.world.get_ground_truth()).compute_metrics()

        print(f"\n{'='*60}")
        print("METRICS SUMMARY")
        print(f"{'='*60}")
        if 'goal_recognition_accuracy' in metrics:
            acc = metrics['goal_recognition_accuracy']
            print(f"Accuracy (all cycles): {acc['overall']*100:.2f}% "
                  f"over {acc['total_samples']} reports")
        if 'final_accuracy' in metrics:
            acc = metrics['final_accuracy']
            print(f"Accuracy (last report): {acc['correct']}/{acc['agents']} agents")
        if 'true_goal_probability' in metrics:
            print(f"Mean P(true goal): {metrics['true_goal_probability']['mean']:.3f}")
        print(f"Degenerate updates: {metrics.get('degenerate_updates', 0)}")
        print(f"Oracle calls: {self.oracle.call_count}")
        print(f"{'='*60}\n")


# =============================================================================
# Argument Parser
# =============================================================================
def parse_arguments():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog='simulation.py',
        description="""
  GOAL INFERENCE SIMULATION - LAYERED ARCHITECTURE

  Infers the goals of simulated pedestrians by simulation-based inverse
  planning: each cycle the velocity every pedestrian would have for every
  candidate goal is simulated and compared with its observed velocity.

  LAYERS:
    L3: Crowd Layer   - Plaza, pedestrians, velocity obstacle navigation
    L4: Intent Layer  - Hypotheses, likelihood, recursive belief update

  SCENARIOS (--scenario):

    crossing - Four pedestrians cross the plaza toward its four exits
               while the robot drives west to east.
    corridor - Pedestrians walk a corridor toward its ends or side doors.
    sampled  - Goals are the cells of a grid sampled over the plaza.

  LIKELIHOOD MODELS (--likelihood):

    gaussian  - Bivariate Gaussian, sigma = max_acceleration / 2 * dt
    student_t - Heavy-tailed Student-t with the same scale
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
  python simulation.py                                   # Crossing scenario
  python simulation.py --scenario sampled --noise_std 0.03 --seed 1
  python simulation.py --likelihood student_t --log_dir log
  python simulation.py --no_ego --verbose                # Robot hidden from the oracle
"""
    )

    parser.add_argument(
        '--scenario',
        type=str,
        choices=sorted(SCENARIOS.keys()),
        default='crossing',
        metavar='NAME',
        help='Crowd scenario: crossing, corridor, sampled (default: crossing)'
    )

    parser.add_argument(
        '--likelihood',
        type=str,
        choices=['gaussian', 'student_t'],
        default=LIKELIHOOD_MODEL,
        metavar='MODEL',
        help=f'Emission model: gaussian, student_t (default: {LIKELIHOOD_MODEL})'
    )

    parser.add_argument(
        '--max_acceleration',
        type=float,
        default=MAX_ACCELERATION,
        metavar='M_S2',
        help=f'Maximum acceleration of observed agents (default: {MAX_ACCELERATION})'
    )

    parser.add_argument(
        '--max_missed_cycles',
        type=int,
        default=MAX_MISSED_CYCLES,
        metavar='N',
        help=f'Cycles before an unobserved agent is evicted (default: {MAX_MISSED_CYCLES})'
    )

    parser.add_argument(
        '--reset_priors',
        action='store_true',
        help='Re-initialize every belief to uniform each cycle'
    )

    parser.add_argument(
        '--no_ego',
        action='store_true',
        help='Exclude the robot from the joint state given to the oracle'
    )

    parser.add_argument(
        '--noise_std',
        type=float,
        default=OBSERVATION_NOISE_STD,
        metavar='M_S',
        help=f'Observed velocity noise std (default: {OBSERVATION_NOISE_STD})'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Seed of the observation noise generator'
    )

    parser.add_argument(
        '--dt',
        type=float,
        default=DEFAULT_DT,
        metavar='SEC',
        help=f'Simulation time step and inference cycle in seconds (default: {DEFAULT_DT})'
    )

    parser.add_argument(
        '--steps',
        type=int,
        default=DEFAULT_SIMULATION_STEPS,
        metavar='N',
        help=f'Maximum simulation steps (default: {DEFAULT_SIMULATION_STEPS})'
    )

    parser.add_argument(
        '--print_every',
        type=int,
        default=10,
        metavar='N',
        help='Print beliefs every N steps, 0 disables (default: 10)'
    )

    parser.add_argument(
        '--log_dir',
        type=str,
        default=None,
        metavar='DIR',
        help='Save belief log, metrics and state under DIR'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='Log engine events (-v INFO, -vv DEBUG with per-goal posteriors)'
    )

    return parser.parse_args()


# =============================================================================
# Main Entry Point
# =============================================================================
def main():
    # Parse command-line arguments
    args = parse_arguments()

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    print("="*60)
    print("GOAL INFERENCE SIMULATION - LAYERED ARCHITECTURE")
    print("="*60)
    print("LAYERS:")
    print("  L3: Crowd Layer  - Plaza, Pedestrians, VO Navigation")
    print("  L4: Intent Layer - Hypotheses, Likelihood, Belief")

    try:
        config = InferenceConfig(
            max_acceleration=args.max_acceleration,
            cycle_period=args.dt,
            reset_priors=args.reset_priors,
            max_missed_cycles=args.max_missed_cycles,
            include_ego=not args.no_ego,
            likelihood_model=args.likelihood
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(2)

    controller = SimulationController(
        scenario=args.scenario,
        config=config,
        dt=args.dt,
        steps=args.steps,
        noise_std=args.noise_std,
        seed=args.seed,
        print_every=args.print_every
    )
    controller.run()

    metrics = None
    if args.log_dir:
        print("\n" + "="*60)
        print("SAVING LOGS AND METRICS...")
        print("="*60)
        metrics = controller.save_logs(args.log_dir)
    controller.print_summary(metrics)


if __name__ == "__main__":
    main()
