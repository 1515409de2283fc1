"""Database tracking for annealing searches.

This module provides database operations for recording search runs and the
outcome of every iteration, so results of different configurations can be
compared after the fact.
"""

import json
import sqlite3
from pathlib import Path
from typing import Dict, Optional

import pandas as pd


class SearchDatabase:
    """SQLite database manager for search runs.

    Uses WAL mode for concurrent read/write access, allowing results to be
    queried while a search is in progress.
    """

    def __init__(self, db_path: Path, enable_wal: bool = True):
        """Initialize database manager.

        Parameters
        ----------
        db_path : Path
            Path to SQLite database file.
        enable_wal : bool, default=True
            Whether to switch the database to WAL journal mode.
        """
        self.db_path = Path(db_path)
        self.enable_wal = enable_wal
        self.timeout = 30.0  # Seconds

    def reset(self) -> None:
        """Delete the database file if it exists to start fresh."""
        if self.db_path.exists():
            self.db_path.unlink()

    def initialize(self) -> None:
        """Initialize database with required tables and indexes.

        Creates two tables:
        - search_runs: One row per search invocation
        - search_iterations: One row per annealing iteration

        Safe to call multiple times - only creates tables if they don't exist.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        try:
            if self.enable_wal:
                conn.execute('PRAGMA journal_mode=WAL')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS search_runs (
                    run_id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    num_attributes INTEGER NOT NULL,
                    label_index INTEGER,
                    options TEXT NOT NULL,
                    best_merit REAL,
                    best_subset TEXT,
                    elapsed_sec REAL
                )
            ''')

            conn.execute('''
                CREATE TABLE IF NOT EXISTS search_iterations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    run_id TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    iteration_num INTEGER NOT NULL,
                    initial_subset TEXT NOT NULL,
                    final_subset TEXT NOT NULL,
                    merit REAL NOT NULL,
                    steps INTEGER NOT NULL,
                    accepted_steps INTEGER NOT NULL,
                    final_temperature REAL NOT NULL,
                    new_best INTEGER NOT NULL
                )
            ''')

            conn.execute('CREATE INDEX IF NOT EXISTS idx_iteration_run ON search_iterations(run_id)')
            conn.execute('CREATE INDEX IF NOT EXISTS idx_iteration_num ON search_iterations(iteration_num)')

            conn.commit()
        finally:
            conn.close()

    def insert_run(self, run_data: Dict) -> None:
        """Insert or update a search run record.

        Parameters
        ----------
        run_data : dict
            Dictionary with required keys: run_id, timestamp, num_attributes,
            options (list of str). Optional keys: label_index, best_merit,
            best_subset (list of int), elapsed_sec.
        """
        best_subset = run_data.get('best_subset')

        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        try:
            conn.execute('''
                INSERT OR REPLACE INTO search_runs (
                    run_id, timestamp, num_attributes, label_index, options,
                    best_merit, best_subset, elapsed_sec
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                run_data['run_id'],
                run_data['timestamp'],
                run_data['num_attributes'],
                run_data.get('label_index'),
                ' '.join(run_data['options']),
                run_data.get('best_merit'),
                json.dumps(best_subset) if best_subset is not None else None,
                run_data.get('elapsed_sec')
            ))
            conn.commit()
        finally:
            conn.close()

    def insert_iteration(self, iteration_data: Dict) -> None:
        """Insert an annealing iteration record.

        Parameters
        ----------
        iteration_data : dict
            Dictionary with required keys: run_id, timestamp, iteration_num,
            initial_subset, final_subset (lists of int), merit, steps,
            accepted_steps, final_temperature, new_best.
        """
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        try:
            conn.execute('''
                INSERT INTO search_iterations (
                    run_id, timestamp, iteration_num, initial_subset, final_subset,
                    merit, steps, accepted_steps, final_temperature, new_best
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                iteration_data['run_id'],
                iteration_data['timestamp'],
                iteration_data['iteration_num'],
                json.dumps(iteration_data['initial_subset']),
                json.dumps(iteration_data['final_subset']),
                iteration_data['merit'],
                iteration_data['steps'],
                iteration_data['accepted_steps'],
                iteration_data['final_temperature'],
                int(iteration_data['new_best'])
            ))
            conn.commit()
        finally:
            conn.close()

    def query_runs(self, limit: Optional[int] = None) -> pd.DataFrame:
        """Query search runs.

        Parameters
        ----------
        limit : int or None, default=None
            Maximum number of rows to return (most recent first).

        Returns
        -------
        df : pd.DataFrame
            Run data, empty if no data exists.
        """
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        try:
            query = 'SELECT * FROM search_runs ORDER BY timestamp DESC'
            if limit is not None:
                query += f' LIMIT {int(limit)}'

            return pd.read_sql_query(query, conn)
        finally:
            conn.close()

    def query_iterations(
        self,
        run_id: Optional[str] = None,
        limit: Optional[int] = None
    ) -> pd.DataFrame:
        """Query iteration data, optionally for a single run.

        Parameters
        ----------
        run_id : str or None, default=None
            Restrict results to one run.
        limit : int or None, default=None
            Maximum number of rows to return (most recent first).

        Returns
        -------
        df : pd.DataFrame
            Iteration data, empty if no data exists.
        """
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        try:
            params = ()
            query = 'SELECT * FROM search_iterations'
            if run_id is not None:
                query += ' WHERE run_id = ?'
                params = (run_id,)
            query += ' ORDER BY id DESC'
            if limit is not None:
                query += f' LIMIT {int(limit)}'

            return pd.read_sql_query(query, conn, params=params)
        finally:
            conn.close()

    def get_best_iteration(self, run_id: str) -> Optional[Dict]:
        """Get the first iteration of a run that reached the run's best merit.

        Parameters
        ----------
        run_id : str
            Unique run identifier.

        Returns
        -------
        iteration : dict or None
            Iteration record with subsets decoded to lists, or None if the
            run has no iterations.
        """
        df = self.query_iterations(run_id=run_id)
        if df.empty:
            return None

        df = df.sort_values('iteration_num')
        best = df.loc[df['merit'].idxmax()].to_dict()
        best['initial_subset'] = json.loads(best['initial_subset'])
        best['final_subset'] = json.loads(best['final_subset'])
        return best

    def exists(self) -> bool:
        """Check if the database file exists.

        Returns
        -------
        exists : bool
            True if database file exists.
        """
        return self.db_path.exists()

    def get_size_mb(self) -> float:
        """Get the size of the database file in MB.

        Returns
        -------
        size_mb : float
            Size in megabytes, or 0 if database doesn't exist.
        """
        if self.db_path.exists():
            return self.db_path.stat().st_size / (1024 * 1024)
        return 0.0
