"""
Argument parsing for the relaxation analysis CLI.

Options are grouped into:
- Input/Output options
- Decay fitting options
- Mechanism (Arrhenius) fitting options
"""

import argparse
from ..version import get_version_string
from ..decay.config import TEMPERATURE_ROUNDING
from ..fitting.mechanisms import PARAMETER_NAMES, MECHANISM_PARAMETERS


class OnePerLineHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Formatter that puts each option on a separate line in usage."""

    def _format_usage(self, usage, actions, groups, prefix):
        if prefix is None:
            prefix = 'usage: '
        if usage is not None:
            return f'{prefix}{usage % dict(prog=self._prog)}\n\n'

        lines = [f'{prefix}{self._prog}']
        for action in actions:
            if not action.option_strings:
                if action.dest != 'help':
                    lines.append(f'              [{action.dest}]' if action.nargs == '?'
                                 else f'              {action.dest}')
                continue
            option = action.option_strings[0]
            if action.nargs == 0:
                lines.append(f'              [{option}]')
            else:
                metavar = action.metavar or action.dest.upper()
                if isinstance(metavar, tuple):
                    metavar = ' '.join(metavar)
                lines.append(f'              [{option} {metavar}]')
        return '\n'.join(lines) + '\n\n'


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate from parsing for testability)."""
    parser = argparse.ArgumentParser(
        description=f'DC magnetic relaxation analysis ({get_version_string()})',
        usage='relax [input] [options]',
        formatter_class=OnePerLineHelpFormatter,
        epilog="""
Examples:
  relax                                  Synthetic data demo
  relax samples.csv                      Decay fits + Orbach fit
  relax samples.csv --t-min 2 --t-max 4  Restrict temperature range
  relax samples.csv --qtm 1e-3           Orbach + QTM
  relax samples.csv -m orbach raman      Orbach + Raman from default seeds
  relax samples.csv --C 1e-4 --n 5 --fix n
                                         Orbach + Raman with fixed exponent
        """
    )

    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {get_version_string()}')

    # ==========================================================================
    # Input/Output Group
    # ==========================================================================
    io_group = parser.add_argument_group('Input/Output')

    io_group.add_argument('input', nargs='?', default=None,
                          help='CSV with corrected samples (Temperature, Time, Moment[, Field]). '
                               'Without argument, synthetic data is used.')
    io_group.add_argument('--delimiter', type=str, default=None,
                          help='CSV delimiter (default: auto-detect)')
    io_group.add_argument('--save', '-s', type=str, default=None,
                          help='Save plots and result tables to files with this prefix')
    io_group.add_argument('--format', '-f', type=str, default='png',
                          choices=['png', 'pdf', 'svg', 'eps'],
                          help='Output format for saved plots (default: png)')
    io_group.add_argument('--no-show', action='store_true',
                          help='Do not display plots (useful with --save)')
    io_group.add_argument('--verbose', '-v', action='count', default=0,
                          help='Show debug messages on stderr')
    io_group.add_argument('--quiet', '-q', action='store_true',
                          help='Quiet mode - hide INFO messages, show only warnings and errors')

    # ==========================================================================
    # Decay Fitting Group
    # ==========================================================================
    decay_group = parser.add_argument_group('Decay Fitting')

    decay_group.add_argument('--t-min', type=float, default=None,
                             help='Minimum rounded temperature [K] (default: unbounded)')
    decay_group.add_argument('--t-max', type=float, default=None,
                             help='Maximum rounded temperature [K] (default: unbounded)')
    decay_group.add_argument('--rounding', type=float, default=TEMPERATURE_ROUNDING,
                             help=f'Temperature rounding granularity [K] '
                                  f'(default: {TEMPERATURE_ROUNDING})')

    # ==========================================================================
    # Mechanism Fitting Group
    # ==========================================================================
    mech_group = parser.add_argument_group(
        'Mechanism Fitting',
        'A mechanism is included when its parameters are given. Without any '
        'parameter the Orbach mechanism is fitted from default seeds.'
    )

    mech_group.add_argument('--Ueff', type=float, default=None,
                            help='Seed for the effective barrier Ueff [K]')
    mech_group.add_argument('--tau0', type=float, default=None,
                            help='Seed for the attempt time tau0 [s]')
    mech_group.add_argument('--qtm', type=float, default=None,
                            help='Seed for the tunnelling rate qtm [1/s]')
    mech_group.add_argument('--C', type=float, default=None,
                            help='Seed for the Raman coefficient C [1/(s K^n)]')
    mech_group.add_argument('--n', type=float, default=None,
                            help='Seed for the Raman exponent n')
    mech_group.add_argument('--mechanism', '-m', nargs='+', default=[], metavar='NAME',
                            choices=list(MECHANISM_PARAMETERS),
                            help='Include mechanisms (orbach, qtm, raman) with default seeds '
                                 'for parameters not given explicitly')
    mech_group.add_argument('--fix', nargs='+', default=[], metavar='NAME',
                            choices=PARAMETER_NAMES,
                            help='Hold the named parameters at their given value')
    mech_group.add_argument('--no-arrhenius', action='store_true',
                            help='Skip the mechanism fit')

    return parser


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Parameters
    ----------
    argv : list of str, optional
        Arguments (default: sys.argv[1:])

    Returns
    -------
    args : argparse.Namespace
        Parsed command line arguments
    """
    return build_parser().parse_args(argv)
