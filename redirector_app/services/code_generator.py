"""
Random short code generation.

Codes are drawn from [a-zA-Z0-9] and checked against the database for
uniqueness, with a bounded number of attempts.
"""

import string
import secrets
from sqlalchemy.orm import Session
from redirector_app.models.link import ShortLink


class CodeGenerationError(Exception):
    """Raised when no free code was found within max_retries attempts"""


class RandomCodeGenerator:
    """
    Generates random alphanumeric codes and checks the database for collisions.
    
    62^6 ≈ 56.8 billion codes at the default length, so collisions are rare
    and a handful of retries is plenty.
    """
    
    def __init__(self, length: int = 6, max_retries: int = 10):
        self.length = length
        self.max_retries = max_retries
        self.characters = string.ascii_letters + string.digits
    
    def generate(self, db_session: Session) -> str:
        """Generate a code that no existing link uses"""
        for attempt in range(self.max_retries):
            code = self._generate_random_string()
            
            if db_session.get(ShortLink, code) is None:
                return code
        
        raise CodeGenerationError(
            f"Could not generate unique short code after {self.max_retries} attempts"
        )
    
    def _generate_random_string(self) -> str:
        return ''.join(secrets.choice(self.characters) for _ in range(self.length))
