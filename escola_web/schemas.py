# -*- coding: utf-8 -*-
"""
Schemas Pydantic para validar os formulários antes de enviá-los à API.
"""

from datetime import date
from typing import Optional, List

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

STATUS_PRESENCA = ("present", "absent", "late", "justified")
TIPOS_OCORRENCIA = ("disciplinary", "medical", "positive", "other")
GRAVIDADES = ("low", "medium", "high")
TIPOS_ETAPA = ("bimester", "quarter", "semester")
STATUS_ALUNO = ("active", "inactive", "transferred")
FORMAS_PAGAMENTO = ("cash", "card", "transfer", "pix", "boleto")
TIPOS_TRANSACAO = ("tuition", "salary", "expense", "income")


def _vazio_para_none(v):
    if isinstance(v, str) and v.strip() == '':
        return None
    return v


def _decimal_br(v):
    # Aceita "1.234,56" e "1234,56" vindos do formulário
    if isinstance(v, str) and ',' in v:
        return v.replace('.', '').replace(',', '.')
    return v


def payload(modelo: BaseModel, **kwargs) -> dict:
    """dict pronto para json=: datas em ISO e campos None removidos."""
    dados = modelo.model_dump(exclude_none=True, **kwargs)
    return {k: v.isoformat() if isinstance(v, date) else v for k, v in dados.items()}


def erros_validacao(exc: ValidationError) -> str:
    """Resume os erros do Pydantic em uma frase para o flash()."""
    mensagens = []
    for erro in exc.errors():
        local = ".".join(str(p) for p in erro.get("loc", ()) if p != "__root__")
        mensagens.append(f"{local}: {erro.get('msg')}" if local else erro.get("msg"))
    return "; ".join(mensagens)


# --- Notas ---
class NotaForm(BaseModel):
    student_id: int
    value: float = Field(..., ge=0, le=10)
    grade_type: str = Field(..., min_length=1, max_length=100)
    date: date
    observation: Optional[str] = None
    diary_id: Optional[int] = None
    academic_term_id: Optional[int] = None
    class_subject_id: Optional[int] = None

    @field_validator('value', mode='before')
    @classmethod
    def nota_decimal(cls, v):
        v = _vazio_para_none(_decimal_br(v))
        if v is None:
            raise ValueError('A nota é obrigatória')
        return v

    @field_validator('observation', 'grade_type', mode='before')
    @classmethod
    def texto_vazio(cls, v):
        return _vazio_para_none(v)


# --- Ocorrências ---
class OcorrenciaForm(BaseModel):
    student_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    occurrence_type: str
    severity: str
    date: date
    notified_guardians: bool = False
    diary_id: Optional[int] = None

    @field_validator('title', 'description', 'occurrence_type', 'severity', mode='before')
    @classmethod
    def texto_vazio(cls, v):
        return _vazio_para_none(v)

    @field_validator('occurrence_type')
    @classmethod
    def tipo_valido(cls, v):
        if v not in TIPOS_OCORRENCIA:
            raise ValueError('Tipo de ocorrência inválido')
        return v

    @field_validator('severity')
    @classmethod
    def gravidade_valida(cls, v):
        if v not in GRAVIDADES:
            raise ValueError('Gravidade inválida')
        return v


# --- Aulas ---
class AulaForm(BaseModel):
    date: date
    topic: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    homework: Optional[str] = None
    duration_minutes: int = Field(50, gt=0)

    @field_validator('topic', 'content', 'homework', mode='before')
    @classmethod
    def texto_vazio(cls, v):
        return _vazio_para_none(v)

    @field_validator('duration_minutes', mode='before')
    @classmethod
    def duracao_padrao(cls, v):
        v = _vazio_para_none(v)
        return 50 if v is None else v


class PresencaItem(BaseModel):
    id: Optional[int] = None
    student_id: int
    status: str
    observation: Optional[str] = None

    @field_validator('status')
    @classmethod
    def status_valido(cls, v):
        if v not in STATUS_PRESENCA:
            raise ValueError('Status de presença inválido')
        return v

    @field_validator('observation', mode='before')
    @classmethod
    def texto_vazio(cls, v):
        return _vazio_para_none(v)


# --- Etapas (períodos letivos) ---
class EtapaForm(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    term_type: str
    year: int = Field(..., ge=2000, le=2100)
    start_date: date
    end_date: date

    @field_validator('name', 'term_type', mode='before')
    @classmethod
    def texto_vazio(cls, v):
        return _vazio_para_none(v)

    @field_validator('term_type')
    @classmethod
    def tipo_valido(cls, v):
        if v not in TIPOS_ETAPA:
            raise ValueError('Tipo de etapa inválido')
        return v

    @field_validator('end_date')
    @classmethod
    def periodo_valido(cls, v, info: ValidationInfo):
        inicio = info.data.get('start_date')
        if inicio and v < inicio:
            raise ValueError('A data final deve ser posterior à inicial')
        return v


# --- Alunos e responsáveis ---
class AlunoForm(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    birth_date: Optional[date] = None
    registration_number: Optional[str] = None
    status: str = "active"
    cpf: Optional[str] = Field(None, max_length=14)
    gender: Optional[str] = None
    birth_place: Optional[str] = None
    school_class_id: Optional[int] = None
    guardian_ids: List[int] = []

    @field_validator('name', 'birth_date', 'registration_number', 'cpf', 'gender',
                     'birth_place', 'school_class_id', mode='before')
    @classmethod
    def texto_vazio(cls, v):
        return _vazio_para_none(v)

    @field_validator('status')
    @classmethod
    def status_valido(cls, v):
        if v not in STATUS_ALUNO:
            raise ValueError('Status inválido')
        return v


class ResponsavelForm(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None
    cpf: Optional[str] = Field(None, max_length=14)
    address: Optional[str] = None
    relationship: Optional[str] = None
    emergency_phone: Optional[str] = None

    @field_validator('name', 'email', 'phone', 'cpf', 'address', 'relationship',
                     'emergency_phone', mode='before')
    @classmethod
    def texto_vazio(cls, v):
        return _vazio_para_none(v)


# --- Financeiro ---
class MensalidadeForm(BaseModel):
    student_id: int
    amount: float = Field(..., gt=0)
    due_date: date
    discount: float = Field(0, ge=0)
    late_fee: float = Field(0, ge=0)
    observation: Optional[str] = None

    @field_validator('amount', 'discount', 'late_fee', mode='before')
    @classmethod
    def decimal(cls, v):
        v = _vazio_para_none(_decimal_br(v))
        return 0 if v is None else v

    @property
    def valor_final(self):
        return valor_final_mensalidade(self.amount, self.discount, self.late_fee)


class PagamentoForm(BaseModel):
    payment_method: str
    paid_date: date
    discount: float = Field(0, ge=0)
    late_fee: float = Field(0, ge=0)

    @field_validator('discount', 'late_fee', mode='before')
    @classmethod
    def decimal(cls, v):
        v = _vazio_para_none(_decimal_br(v))
        return 0 if v is None else v

    @field_validator('payment_method')
    @classmethod
    def forma_valida(cls, v):
        if v not in FORMAS_PAGAMENTO:
            raise ValueError('Forma de pagamento inválida')
        return v


# --- Transações financeiras ---
class TransacaoForm(BaseModel):
    transaction_type: str
    amount: float = Field(..., gt=0)
    due_date: date
    description: str = Field(..., min_length=1, max_length=255)
    discount: float = Field(0, ge=0)
    late_fee: float = Field(0, ge=0)
    observation: Optional[str] = None

    @field_validator('amount', 'discount', 'late_fee', mode='before')
    @classmethod
    def decimal(cls, v):
        v = _vazio_para_none(_decimal_br(v))
        return 0 if v is None else v

    @field_validator('transaction_type')
    @classmethod
    def tipo_valido(cls, v):
        if v not in TIPOS_TRANSACAO:
            raise ValueError('Tipo de transação inválido')
        return v

    @field_validator('observation', mode='before')
    @classmethod
    def observacao_vazia(cls, v):
        return _vazio_para_none(v)


class SalarioForm(BaseModel):
    teacher_id: int
    amount: float = Field(..., gt=0)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    bonus: float = Field(0, ge=0)
    deductions: float = Field(0, ge=0)

    @field_validator('amount', 'bonus', 'deductions', mode='before')
    @classmethod
    def decimal(cls, v):
        v = _vazio_para_none(_decimal_br(v))
        return 0 if v is None else v

    @property
    def valor_final(self):
        return valor_final_salario(self.amount, self.bonus, self.deductions)


class GeracaoLoteForm(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)
    amount: Optional[float] = Field(None, gt=0)

    @field_validator('amount', mode='before')
    @classmethod
    def decimal(cls, v):
        return _vazio_para_none(_decimal_br(v))


def valor_final_mensalidade(valor, desconto=0, multa=0):
    """Valor final da mensalidade: base - desconto + multa por atraso."""
    return round(float(valor or 0) - float(desconto or 0) + float(multa or 0), 2)


def valor_final_salario(valor, bonus=0, descontos=0):
    """Valor final do salário: base + bônus - descontos."""
    return round(float(valor or 0) + float(bonus or 0) - float(descontos or 0), 2)
