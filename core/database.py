import mysql.connector
from mysql.connector import pooling
import os
import asyncio
import json
import logging
from colorama import Fore
from .models import VerdictLog

logger = logging.getLogger("domainguard.db")

db_config = {
    "host": os.getenv("DOMAINGUARD_DB_HOST", "localhost"),
    "user": os.getenv("DOMAINGUARD_DB_USER", "root"),
    "password": os.getenv("DOMAINGUARD_DB_PASSWORD", ""),
    "database": os.getenv("DOMAINGUARD_DB_NAME", "domain_guard"),
}
POOL_SIZE = 10

# Created on first use so importing this module never touches the network
pool = None

def _get_pool():
    global pool
    if pool is None:
        try:
            pool = pooling.MySQLConnectionPool(
                pool_name="domainguard_pool",
                pool_size=POOL_SIZE,
                **db_config
            )
            print(f"{Fore.GREEN}[+] Managed DB connection pool initialized (Size: {POOL_SIZE}).")
        except mysql.connector.Error as e:
            print(f"{Fore.RED}[X] Failed to initialize connection pool: {e}")
            return None
    return pool

def get_db_connection():
    try:
        p = _get_pool()
        if p:
            return p.get_connection()
        return mysql.connector.connect(**db_config)
    except mysql.connector.Error as exc:
        logger.error(f"DB connection error: {exc}")
        return None

def init_db():
    conn = get_db_connection()
    if not conn:
        print(f"{Fore.YELLOW}[!] Database unavailable - verdict history will not be persisted.")
        return False
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS domain_logs (
                id INT AUTO_INCREMENT PRIMARY KEY,
                timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
                domain VARCHAR(255),
                full_target TEXT,
                risk_score INT DEFAULT 0,
                threat_level VARCHAR(20) DEFAULT 'low',
                action VARCHAR(20) DEFAULT 'ALLOW',
                category VARCHAR(255) DEFAULT 'general',
                features TEXT,
                source VARCHAR(50) DEFAULT 'unknown',
                device_hash VARCHAR(100)
            )
        """)
        conn.commit()

        # performance indexes
        try:
            cursor.execute("CREATE INDEX idx_domain_logs_time ON domain_logs(timestamp)")
            cursor.execute("CREATE INDEX idx_domain_logs_action ON domain_logs(action)")
        except mysql.connector.Error:
            pass  # already present

        cursor.close()
        print(f"{Fore.GREEN}[!] Database initialized.")
        return True
    except mysql.connector.Error as e:
        print(f"{Fore.RED}[X] DB Init Error: {e}")
        return False
    finally:
        conn.close()

# --- SINGLE WRITER DB BUFFER ---
log_queue = asyncio.Queue(maxsize=10000)

def enqueue_log(entry: VerdictLog) -> bool:
    try:
        log_queue.put_nowait(entry)
        return True
    except asyncio.QueueFull:
        logger.error(f"Log queue full - dropping verdict for {entry.domain}")
        return False

def _take_batch(limit):
    logs = []
    while len(logs) < limit:
        try:
            logs.append(log_queue.get_nowait())
        except asyncio.QueueEmpty:
            break
    return logs

async def drain_log_queue():
    """Drains all remaining items in the queue to the database before shutdown."""
    print(f"{Fore.YELLOW}[!] Draining {log_queue.qsize()} verdict logs to DB...")
    while not log_queue.empty():
        logs = _take_batch(500)
        write_logs_to_db(logs)
        for _ in range(len(logs)):
            log_queue.task_done()
    print(f"{Fore.GREEN}[+] Queue drained successfully.")

async def db_writer_worker():
    while True:
        logs = [await log_queue.get()]
        logs.extend(_take_batch(99))

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, write_logs_to_db, logs)
        finally:
            # Always mark tasks as done, even if DB write failed (logs dropped)
            for _ in range(len(logs)):
                log_queue.task_done()

def write_logs_to_db(logs):
    if not logs:
        return 0
    conn = get_db_connection()
    if not conn:
        logger.warning(f"Dropping {len(logs)} verdict logs - no DB connection")
        return 0
    try:
        cursor = conn.cursor()
        sql = ("INSERT INTO domain_logs (timestamp, domain, full_target, risk_score, threat_level, "
               "action, category, features, source, device_hash) "
               "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)")
        vals = [(
            l.time, l.domain, l.full_target, l.risk_score, l.threat_level,
            l.action, l.category, json.dumps(l.features), l.source or "unknown", l.device_hash
        ) for l in logs]
        cursor.executemany(sql, vals)
        conn.commit()
        cursor.close()
        return len(vals)
    except mysql.connector.Error as e:
        logger.error(f"DB Worker Error: {e}")
        return 0
    finally:
        conn.close()

# --- DATA ACCESS LAYER ---

def db_fetch_recent_logs(limit=100, action=None):
    conn = get_db_connection()
    if not conn: return []
    try:
        cursor = conn.cursor(dictionary=True)
        query = "SELECT * FROM domain_logs"
        params = []
        if action:
            query += " WHERE action = %s"
            params.append(action)
        query += " ORDER BY id DESC LIMIT %s"
        params.append(limit)

        cursor.execute(query, tuple(params))
        return cursor.fetchall()
    except mysql.connector.Error as e:
        logger.error(f"DB Fetch Error: {e}")
        return []
    finally:
        conn.close()

def db_fetch_action_counts(since_hours=24):
    conn = get_db_connection()
    if not conn: return []
    try:
        cursor = conn.cursor(dictionary=True)
        cursor.execute("""
            SELECT action, COUNT(*) AS total
            FROM domain_logs
            WHERE timestamp > (NOW() - INTERVAL %s HOUR)
            GROUP BY action
        """, (since_hours,))
        return cursor.fetchall()
    except mysql.connector.Error as e:
        logger.error(f"Stats Fetch Error: {e}")
        return []
    finally:
        conn.close()
