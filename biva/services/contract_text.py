"""Legal text for rental and sale contracts.

The text is generated once, when the contract is created, and stored as is;
later profile edits never change a contract both parties have read.
"""

import math
from datetime import date

NOT_PROVIDED = "Não fornecido"


def format_kwanza(amount: int | float) -> str:
    """350000 -> '350.000,00 Kz'."""
    grouped = f"{amount:,.2f}"
    return grouped.replace(",", "_").replace(".", ",").replace("_", ".") + " Kz"


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def duration_in_months(start_date: date, end_date: date) -> int:
    """Whole months between two dates, rounding partial months up (30-day months)."""
    return max(1, math.ceil((end_date - start_date).days / 30))


def _party_block(label: str, user) -> str:
    lines = [
        f"{label}:",
        f"Nome: {user.full_name}",
        f"Bilhete de Identidade/Passaporte: {user.id_document or NOT_PROVIDED}",
        f"Telefone: {user.phone or NOT_PROVIDED}",
    ]
    if user.email:
        lines.append(f"Email: {user.email}")
    if user.address:
        lines.append(f"Endereço: {user.address}")
    return "\n".join(lines)


def _property_block(property_) -> str:
    area = f"{property_.area:g}m²" if property_.area else NOT_PROVIDED
    return "\n".join(
        [
            f"Designação: {property_.title}",
            f"Tipo: {property_.category}",
            f"Localização: {property_.bairro}, {property_.municipio}, {property_.provincia}",
            f"Área: {area}",
            f"- {property_.bedrooms} Quarto(s)",
            f"- {property_.bathrooms} Casa(s) de Banho",
            f"Descrição: {property_.description or 'Não fornecida'}",
        ]
    )


def _signature_block(label: str, user) -> str:
    return "\n".join(
        [
            "_________________________________",
            label,
            f"Nome: {user.full_name}",
            f"BI/Passaporte: {user.id_document or NOT_PROVIDED}",
        ]
    )


def generate_rental_contract(
    property_,
    owner,
    tenant,
    amount: int,
    start_date: date,
    end_date: date,
    issued_on: date,
) -> str:
    months = duration_in_months(start_date, end_date)
    rent = format_kwanza(amount)

    return f"""CONTRATO DE ARRENDAMENTO URBANO

Em conformidade com a Lei n.º 26/15 de 23 de Outubro (Lei do Arrendamento Urbano)

IDENTIFICAÇÃO DAS PARTES

{_party_block("SENHORIO (Proprietário/Arrendador)", owner)}

{_party_block("INQUILINO (Arrendatário)", tenant)}

IDENTIFICAÇÃO DO IMÓVEL

{_property_block(property_)}

CLÁUSULAS CONTRATUAIS

Cláusula 01ª (Objeto do Contrato)
O SENHORIO arrenda ao INQUILINO o imóvel acima identificado, para fins de habitação, nos termos e condições estabelecidos no presente contrato.

Cláusula 02ª (Prazo)
O presente contrato tem a duração de {months} meses, com início em {format_date(start_date)} e termo em {format_date(end_date)}. O contrato renova-se automaticamente por períodos iguais, salvo denúncia por qualquer das partes com a antecedência mínima de 60 dias.

Cláusula 03ª (Renda)
A renda mensal é de {rent}, a pagar até ao dia 5 de cada mês, por transferência bancária ou outro meio acordado entre as partes. É proibida a exigência de antecipação de rendas superior a 3 meses.

Cláusula 04ª (Obrigações do Senhorio)
O SENHORIO obriga-se a garantir o uso pacífico do imóvel, efetuar as reparações necessárias à sua conservação e emitir recibo de todas as rendas recebidas.

Cláusula 05ª (Obrigações do Inquilino)
O INQUILINO obriga-se a pagar pontualmente a renda, usar o imóvel para habitação, conservá-lo em bom estado e não o subarrendar, ceder ou emprestar sem autorização escrita do SENHORIO.

Cláusula 06ª (Despesas)
São por conta do INQUILINO as despesas de água, energia elétrica, gás e outras relativas ao uso normal do imóvel. O Imposto Predial Urbano é da responsabilidade do SENHORIO.

Cláusula 07ª (Restituição do Imóvel)
No termo do contrato, o INQUILINO deve restituir o imóvel no estado em que o recebeu, salvo desgaste normal decorrente do uso adequado.

Cláusula 08ª (Foro)
Para dirimir quaisquer litígios emergentes do presente contrato, as partes elegem o foro da Comarca de {property_.provincia}.

Cláusula 09ª (Disposições Finais)
O presente contrato é regulado pela Lei n.º 26/15 de 23 de Outubro e pelo Código Civil angolano. As partes declaram ter lido, compreendido e aceite todos os termos do presente contrato.

Data de Celebração: {format_date(issued_on)}

ASSINATURAS DIGITAIS

{_signature_block("SENHORIO (Proprietário)", owner)}

{_signature_block("INQUILINO (Arrendatário)", tenant)}
"""


def generate_sale_contract(
    property_,
    seller,
    buyer,
    amount: int,
    start_date: date,
    issued_on: date,
) -> str:
    price = format_kwanza(amount)

    return f"""CONTRATO DE PROMESSA DE COMPRA E VENDA

IDENTIFICAÇÃO DAS PARTES

{_party_block("VENDEDOR (Proprietário)", seller)}

{_party_block("COMPRADOR", buyer)}

IDENTIFICAÇÃO DO IMÓVEL

{_property_block(property_)}

CLÁUSULAS CONTRATUAIS

Cláusula 01ª (Objeto do Contrato)
O VENDEDOR promete vender ao COMPRADOR, que promete comprar, o imóvel acima identificado, livre de ónus ou encargos.

Cláusula 02ª (Preço)
O preço total acordado é de {price}, a liquidar nos termos acordados entre as partes.

Cláusula 03ª (Transmissão)
A posse e a propriedade do imóvel transmitem-se ao COMPRADOR a partir de {format_date(start_date)}, após confirmação do presente contrato por ambas as partes.

Cláusula 04ª (Foro)
Para dirimir quaisquer litígios emergentes do presente contrato, as partes elegem o foro da Comarca de {property_.provincia}.

Cláusula 05ª (Disposições Finais)
O presente contrato é regulado pelo Código Civil angolano. As partes declaram ter lido, compreendido e aceite todos os termos do presente contrato.

Data de Celebração: {format_date(issued_on)}

ASSINATURAS DIGITAIS

{_signature_block("VENDEDOR (Proprietário)", seller)}

{_signature_block("COMPRADOR", buyer)}
"""
