"""HTTP client for the Inference Service (booking text and payment receipts)."""

import aiohttp
from datetime import date
from typing import Any, Dict, Iterable, Optional
from config.settings import config
from models.schedule import Professional
from models.service import Service
from utils.logger import setup_logger

logger = setup_logger(__name__)

WEEKDAY_NAMES = ['segunda-feira', 'terça-feira', 'quarta-feira', 'quinta-feira', 'sexta-feira', 'sábado', 'domingo']


def build_appointment_instruction(
    services: Iterable[Service],
    professionals: Iterable[Professional],
    today: Optional[date] = None
) -> str:
    """System instruction sent with a natural-language booking."""
    today = today or date.today()
    professional_list = list(professionals)

    return (
        "Você é um assistente de agendamento para um salão de beleza. "
        "Extraia as informações do texto em português e responda em JSON com os campos "
        "clientName, services, professionalName, date e time.\n"
        "O usuário pode usar termos relativos como \"hoje\", \"amanhã\" ou o nome de um dia da semana. "
        f"Hoje é {WEEKDAY_NAMES[today.weekday()]}, {today:%d/%m/%Y}.\n"
        f"Serviços disponíveis: {', '.join(service.name for service in services)}.\n"
        f"Profissionais disponíveis: {', '.join(professional.name for professional in professional_list)}.\n"
        "Se nenhuma profissional for mencionada, deixe professionalName como null.\n"
        "Retorne a hora no formato \"HH:MM\"."
    )


PAYMENT_INSTRUCTION = (
    "Leia o comprovante de pagamento (Pix ou transferência) e responda em JSON com o campo "
    "value contendo o valor pago como número."
)


class InferenceClient:
    """HTTP client for the Inference Service."""

    def __init__(self, url: Optional[str] = None, api_key: Optional[str] = None, timeout: Optional[int] = None):
        self.url = url or config.INFERENCE_URL
        self.api_key = api_key or config.INFERENCE_API_KEY
        self.timeout = timeout or config.INFERENCE_TIMEOUT_SECONDS

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.api_key}'
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    response.raise_for_status()
                    result = await response.json()
                    logger.info(f"Inference response received for task {payload['task']}")
                    return result

        except Exception as e:
            logger.error(f"Inference Service error ({payload['task']}): {e}")
            raise

    async def extract_appointment(
        self,
        prompt: str,
        services: Iterable[Service],
        professionals: Iterable[Professional],
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Extract booking fields from a free-text request.

        Args:
            prompt: Text typed or dictated by the salon staff
            services: Active service catalog
            professionals: Known professionals
            today: Reference day for relative dates

        Returns:
            Raw {clientName, services, professionalName, date, time}; pass it
            to ``scheduling.resolution.resolve_scheduling_request``
        """
        payload = {
            'task': 'extract_appointment',
            'instruction': build_appointment_instruction(services, professionals, today),
            'prompt': prompt,
            'response_format': 'json'
        }
        return await self._post(payload)

    async def extract_payment_value(self, image_b64: str, mime_type: str = 'image/jpeg') -> Dict[str, Any]:
        """
        Read the paid amount from a payment receipt image.

        Args:
            image_b64: Base64-encoded image
            mime_type: Image MIME type

        Returns:
            Raw {value}; pass it to ``scheduling.resolution.resolve_payment_extraction``
        """
        payload = {
            'task': 'extract_payment_value',
            'instruction': PAYMENT_INSTRUCTION,
            'image': {'data': image_b64, 'mime_type': mime_type},
            'response_format': 'json'
        }
        return await self._post(payload)
