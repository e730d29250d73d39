"""
Key Derivation
Turns a password into the vault key using Argon2id.

The salt and cost parameters live in the vault's crypt.json, next to the
encrypted items. They are not secret. The password and the derived key
never touch the backend.

  Password + Salt + KDFParameters → Argon2id → 32-byte vault key
"""

import base64
import binascii
import json
import logging
import os
import time
from dataclasses import dataclass, field

from argon2.exceptions import HashingError
from argon2.low_level import Type as Argon2Type, hash_secret_raw

from cryptvault.errors import ConfigurationError, RandomnessError, VaultKeyError

logger = logging.getLogger("cryptvault.kdf")

KEY_SIZE = 32    # AES-256
SALT_SIZE = 16
MIN_SALT_SIZE = 8  # Argon2 minimum

KDF_ALGORITHM = "argon2id"
DEFAULT_TIME_COST = 3
DEFAULT_MEMORY_COST = 65536  # KiB (64 MiB)
DEFAULT_PARALLELISM = 4

# Argon2 limits: 32-bit costs, 24-bit lanes
MAX_TIME_COST = 2**32 - 1
MAX_MEMORY_COST = 2**32 - 1
MAX_PARALLELISM = 2**24 - 1


def random_bytes(size: int) -> bytes:
    """
    Read `size` bytes from the operating system's CSPRNG.

    Raises:
        RandomnessError: If the OS random source is unavailable. There is
            no fallback to a weaker generator.
    """
    try:
        data = os.urandom(size)
    except (OSError, NotImplementedError) as e:
        raise RandomnessError(f"secure random source failed: {e}") from e
    if len(data) != size:
        raise RandomnessError(f"secure random source returned {len(data)} of {size} bytes")
    return data


def _require_int(raw: dict, name: str, minimum: int) -> int:
    value = raw.get(name)
    # bool is an int subclass; true/false in JSON is a mistake here
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"kdf_parameters.{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"kdf_parameters.{name} must be at least {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class KDFParameters:
    """Argon2id cost parameters stored in crypt.json."""
    time_cost: int = DEFAULT_TIME_COST
    memory_cost: int = DEFAULT_MEMORY_COST  # KiB
    parallelism: int = DEFAULT_PARALLELISM
    algorithm: str = KDF_ALGORITHM

    def __post_init__(self):
        if self.algorithm != KDF_ALGORITHM:
            raise ConfigurationError(f"Unsupported KDF algorithm: {self.algorithm!r}")
        if not 1 <= self.time_cost <= MAX_TIME_COST:
            raise ConfigurationError(f"time_cost must be between 1 and {MAX_TIME_COST}, got {self.time_cost}")
        if not 1 <= self.parallelism <= MAX_PARALLELISM:
            raise ConfigurationError(f"parallelism must be between 1 and {MAX_PARALLELISM}, got {self.parallelism}")
        if self.memory_cost > MAX_MEMORY_COST:
            raise ConfigurationError(f"memory_cost must be at most {MAX_MEMORY_COST} KiB, got {self.memory_cost}")
        if self.memory_cost < 8 * self.parallelism:
            raise ConfigurationError(
                f"memory_cost must be at least 8 * parallelism "
                f"({8 * self.parallelism} KiB), got {self.memory_cost}"
            )

    def to_dict(self) -> dict:
        return {
            "algorithm": self.algorithm,
            "time_cost": self.time_cost,
            "memory_cost": self.memory_cost,
            "parallelism": self.parallelism,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "KDFParameters":
        """Validate and build parameters from their JSON form."""
        if not isinstance(raw, dict):
            raise ConfigurationError(f"kdf_parameters must be an object, got {type(raw).__name__}")
        algorithm = raw.get("algorithm")
        if algorithm != KDF_ALGORITHM:
            raise ConfigurationError(f"Unsupported KDF algorithm: {algorithm!r}")
        return cls(
            time_cost=_require_int(raw, "time_cost", 1),
            memory_cost=_require_int(raw, "memory_cost", 8),
            parallelism=_require_int(raw, "parallelism", 1),
            algorithm=algorithm,
        )


@dataclass(frozen=True)
class VaultSettings:
    """
    The vault-level configuration record (crypt.json).

    Holds everything needed to re-derive the key from the password.
    Written once when the vault is created, never changed afterwards.
    """
    salt: bytes
    kdf_parameters: KDFParameters = field(default_factory=KDFParameters)

    def __post_init__(self):
        if len(self.salt) < MIN_SALT_SIZE:
            raise ConfigurationError(
                f"salt must be at least {MIN_SALT_SIZE} bytes, got {len(self.salt)}"
            )

    @classmethod
    def generate(cls, kdf_parameters: KDFParameters | None = None) -> "VaultSettings":
        """Create settings for a new vault with a fresh random salt."""
        return cls(
            salt=random_bytes(SALT_SIZE),
            kdf_parameters=kdf_parameters or KDFParameters(),
        )

    def to_json(self) -> bytes:
        doc = {
            "salt": base64.b64encode(self.salt).decode(),
            "kdf_parameters": self.kdf_parameters.to_dict(),
        }
        return json.dumps(doc, indent=2).encode("utf-8")

    @classmethod
    def from_json(cls, data: bytes) -> "VaultSettings":
        """
        Parse crypt.json contents.

        Raises:
            ConfigurationError: On invalid JSON or any missing or
                malformed field. Nothing is defaulted.
        """
        try:
            doc = json.loads(data)
        except (UnicodeDecodeError, ValueError) as e:
            raise ConfigurationError(f"crypt.json is not valid JSON: {e}") from e
        if not isinstance(doc, dict):
            raise ConfigurationError("crypt.json must contain a JSON object")

        for required in ("salt", "kdf_parameters"):
            if required not in doc:
                raise ConfigurationError(f"crypt.json is missing {required!r}")

        raw_salt = doc["salt"]
        if not isinstance(raw_salt, str):
            raise ConfigurationError("salt must be a base64 string")
        try:
            salt = base64.b64decode(raw_salt, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ConfigurationError(f"salt is not valid base64: {e}") from e

        return cls(salt=salt, kdf_parameters=KDFParameters.from_dict(doc["kdf_parameters"]))


def derive_key(password: str | bytes, salt: bytes, params: KDFParameters) -> bytes:
    """
    Derive the 32-byte vault key from a password with Argon2id.

    Deterministic: the same password, salt and parameters always give
    the same key. Deliberately slow and memory-hungry.

    Raises:
        ConfigurationError: If Argon2 rejects the parameters.
        VaultKeyError: If the derived key is not KEY_SIZE bytes.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    started = time.monotonic()
    try:
        key = hash_secret_raw(
            secret=password,
            salt=salt,
            time_cost=params.time_cost,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=KEY_SIZE,
            type=Argon2Type.ID,
        )
    except (HashingError, OverflowError) as e:
        raise ConfigurationError(f"key derivation rejected the parameters: {e}") from e

    logger.debug(
        "Derived key (t=%d, m=%dKiB, p=%d) in %.2fs",
        params.time_cost, params.memory_cost, params.parallelism,
        time.monotonic() - started,
    )

    if len(key) != KEY_SIZE:
        raise VaultKeyError(f"derived key is {len(key)} bytes, expected {KEY_SIZE}")
    return key
