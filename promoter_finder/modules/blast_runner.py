"""
BLAST Runner Module

Runs BLAST+ to produce the 14-column tabular file the hit filter reads
('-outfmt "6 std qlen slen"'). Executables are located when the runner is
constructed, so a missing BLAST installation fails before any work starts.
"""

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from ..utils.external import find_executable

logger = logging.getLogger(__name__)

BLAST_OUTFMT = "6 std qlen slen"
BLAST_PROGRAMS = ("blastp", "blastn", "blastx", "tblastn", "tblastx")


class BlastRunner:
    """
    Thin wrapper around a BLAST+ search program.
    """

    def __init__(
        self,
        program: str = "blastp",
        evalue: float = 1e-5,
        threads: int = 1,
        max_target_seqs: Optional[int] = None,
        search_dir: Optional[str] = None
    ):
        """
        Initialize the runner.

        Args:
            program: BLAST+ program name (default: blastp)
            evalue: E-value cutoff passed to BLAST (default: 1e-5)
            threads: Number of BLAST threads (default: 1)
            max_target_seqs: Optional -max_target_seqs value
            search_dir: Directory searched for the executable before PATH

        Raises:
            ValueError: Unknown program name
            RuntimeError: Program not installed
        """
        if program not in BLAST_PROGRAMS:
            raise ValueError(f"Unknown BLAST program '{program}'. Must be one of {', '.join(BLAST_PROGRAMS)}")

        self.program = program
        self.evalue = evalue
        self.threads = threads
        self.max_target_seqs = max_target_seqs
        self.executable = find_executable(program, search_dir)

    def build_command(
        self,
        query_fasta: str,
        output_file: str,
        db: Optional[str] = None,
        subject_fasta: Optional[str] = None
    ) -> List[str]:
        """Build the BLAST command line for a database or subject FASTA search."""
        if (db is None) == (subject_fasta is None):
            raise ValueError("Exactly one of db or subject_fasta must be given")

        cmd = [
            self.executable,
            '-query', str(query_fasta),
            '-out', str(output_file),
            '-outfmt', BLAST_OUTFMT,
            '-evalue', str(self.evalue),
        ]
        if db is not None:
            cmd += ['-db', str(db), '-num_threads', str(self.threads)]
        else:
            cmd += ['-subject', str(subject_fasta)]
        if self.max_target_seqs is not None:
            cmd += ['-max_target_seqs', str(self.max_target_seqs)]
        return cmd

    def run(
        self,
        query_fasta: str,
        db: Optional[str] = None,
        subject_fasta: Optional[str] = None,
        output_file: Optional[str] = None
    ) -> str:
        """
        Run the search.

        Args:
            query_fasta: Query sequences
            db: BLAST database prefix
            subject_fasta: Subject FASTA (instead of db)
            output_file: Result path (default: temp file)

        Returns:
            Path to the tabular results file

        Raises:
            FileNotFoundError: Query FASTA missing
            RuntimeError: BLAST exited with an error
        """
        if not Path(query_fasta).exists():
            raise FileNotFoundError(f"Query file not found: {query_fasta}")

        if output_file is None:
            output_file = tempfile.NamedTemporaryFile(suffix='.m8', delete=False).name

        cmd = self.build_command(query_fasta, output_file, db=db, subject_fasta=subject_fasta)
        logger.info("Running BLAST: %s", ' '.join(cmd))

        try:
            subprocess.run(cmd, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"{self.program} failed: {e.stderr}") from e

        logger.info("BLAST search completed, results in %s", output_file)
        return output_file
