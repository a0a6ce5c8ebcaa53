from securebox.strategies.base import NoPlanError, Strategy
from securebox.strategies.gaussian_elimination import GaussianElimination
from securebox.strategies.reduced_row_echelon import ReducedRowEchelon
