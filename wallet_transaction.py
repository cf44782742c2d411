"""
Unsigned transaction assembly from a wallet spend plan.

Implements:
- Transaction: a small mutable transaction model (inputs, outputs, fee,
  automatic change) serialized through python-bitcoinlib
- build_tx: assembles a plan's inputs and outputs, applies the agreed
  output order and checks that inputs minus outputs is a sane fee
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Sequence

from bit.transaction import address_to_scriptpubkey
from bitcoin.core import (
    CMutableTransaction,
    CMutableTxIn,
    CMutableTxOut,
    COutPoint,
    CScript,
    b2lx,
    b2x,
    lx,
)

from wallet_address import (
    DerivedAddress,
    coerce_scheme,
    multisig_redeem_script,
)
from wallet_config import WalletUtilsConfig
from wallet_constants import DEFAULT_DUST_AMOUNT, AddressScheme
from wallet_errors import ArgumentError, StateError

logger = logging.getLogger(__name__)

SATOSHIS_PER_BTC = 100_000_000


def _require_satoshis(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ArgumentError(f"{what} must be a non-negative integer amount of satoshis, got {value!r}.")
    return value


def _require_txid(txid: Any) -> str:
    if not isinstance(txid, str) or len(txid) != 64:
        raise ArgumentError(f"Invalid txid: {txid!r}")
    try:
        bytes.fromhex(txid)
    except ValueError as exc:
        raise ArgumentError(f"Invalid txid: {txid!r}") from exc
    return txid


def _hex_bytes(value: str | bytes, what: str) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    try:
        return bytes.fromhex(value)
    except (TypeError, ValueError) as exc:
        raise ArgumentError(f"{what} must be hex, got {value!r}.") from exc


# ---------------------------------------------------------------------------
# Plan types
# ---------------------------------------------------------------------------


@dataclass
class Utxo:
    """An unspent output referenced by a spend plan."""

    txid: str
    vout: int
    satoshis: int
    script_pub_key: str | None = None
    public_keys: list[str] = field(default_factory=list)
    required_signatures: int | None = None
    path: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Utxo:
        satoshis = data.get("satoshis")
        if satoshis is None and data.get("amount") is not None:
            # "amount" is denominated in BTC
            try:
                btc = Decimal(str(data["amount"])) * SATOSHIS_PER_BTC
            except InvalidOperation as exc:
                raise ArgumentError(f"Invalid UTXO amount: {data['amount']!r}") from exc
            if btc != btc.to_integral_value():
                raise ArgumentError(f"UTXO amount has sub-satoshi precision: {data['amount']!r}")
            satoshis = int(btc)
        try:
            vout = int(data.get("vout", 0))
        except (TypeError, ValueError) as exc:
            raise ArgumentError(f"Invalid UTXO vout: {data.get('vout')!r}") from exc
        return cls(
            txid=data.get("txid", ""),
            vout=vout,
            satoshis=satoshis,
            script_pub_key=data.get("scriptPubKey") or data.get("script_pub_key"),
            public_keys=list(data.get("publicKeys") or data.get("public_keys") or []),
            required_signatures=data.get("requiredSignatures", data.get("required_signatures")),
            path=data.get("path"),
        )


@dataclass
class PlanOutput:
    amount: int
    to_address: str | None = None
    script: str | None = None
    message: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlanOutput:
        return cls(
            amount=data.get("amount"),
            to_address=data.get("toAddress") or data.get("to_address"),
            script=data.get("script"),
            message=data.get("message"),
        )


@dataclass
class TransactionPlan:
    """
    A caller-owned spend plan. build_tx reads it and never mutates it.

    Either give outputs, or a single to_address and amount. sort_keys orders
    multisig redeem script keys lexicographically (BIP67), matching addresses
    from derive_address(..., sort_keys=True).
    """

    address_type: AddressScheme | str
    inputs: list[Utxo]
    fee: int
    change_address: str | DerivedAddress | dict | None = None
    outputs: list[PlanOutput] = field(default_factory=list)
    to_address: str | None = None
    amount: int | None = None
    output_order: list[int] | None = None
    required_signatures: int | None = None
    sort_keys: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionPlan:
        def pick(camel: str, snake: str) -> Any:
            return data[camel] if camel in data else data.get(snake)

        inputs = [u if isinstance(u, Utxo) else Utxo.from_dict(u) for u in data.get("inputs") or []]
        outputs = [
            o if isinstance(o, PlanOutput) else PlanOutput.from_dict(o)
            for o in data.get("outputs") or []
        ]
        return cls(
            address_type=pick("addressType", "address_type"),
            inputs=inputs,
            fee=data.get("fee"),
            change_address=pick("changeAddress", "change_address"),
            outputs=outputs,
            to_address=pick("toAddress", "to_address"),
            amount=data.get("amount"),
            output_order=pick("outputOrder", "output_order"),
            required_signatures=pick("requiredSignatures", "required_signatures"),
            sort_keys=bool(pick("sortKeys", "sort_keys")),
        )


def _resolve_address(address: str | DerivedAddress | dict | None) -> str | None:
    if address is None or isinstance(address, str):
        return address or None
    if isinstance(address, DerivedAddress):
        return address.address
    if isinstance(address, dict) and address.get("address"):
        return address["address"]
    raise ArgumentError(f"Unsupported address value: {address!r}")


# ---------------------------------------------------------------------------
# Transaction model
# ---------------------------------------------------------------------------


@dataclass
class TxInput:
    txid: str
    vout: int
    satoshis: int
    redeem_script: bytes | None = None
    public_keys: tuple[str, ...] = ()
    required_signatures: int | None = None


@dataclass
class TxOutput:
    satoshis: int
    script: bytes
    address: str | None = None
    is_change: bool = False


class Transaction:
    """
    An unsigned transaction under construction.

    When a change address is set, a change output is kept in sync with the
    inputs, outputs and fee. It is added only if the change is above the
    dust amount; otherwise the remainder goes to the fee.
    """

    def __init__(self, dust_amount: int = DEFAULT_DUST_AMOUNT) -> None:
        self.dust_amount = dust_amount
        self._inputs: list[TxInput] = []
        self._outputs: list[TxOutput] = []
        self._fee = 0
        self._change_address: str | None = None

    # -- inputs -------------------------------------------------------------

    def add_input(self, utxo: Utxo) -> Transaction:
        self._inputs.append(
            TxInput(
                txid=_require_txid(utxo.txid),
                vout=int(utxo.vout),
                satoshis=_require_satoshis(utxo.satoshis, "UTXO value"),
            )
        )
        self._update_change_output()
        return self

    def add_inputs(self, utxos: Sequence[Utxo]) -> Transaction:
        for utxo in utxos:
            self.add_input(utxo)
        return self

    def add_multisig_input(
        self,
        utxo: Utxo,
        public_keys: Sequence[str],
        threshold: int | None,
        sort_keys: bool = False,
    ) -> Transaction:
        """Add a P2SH multisig input spending utxo with the given signer keys."""
        if not public_keys:
            raise ArgumentError(f"Multisig input {utxo.txid}:{utxo.vout} has no public keys.")
        keys = [_hex_bytes(pk, "Public key") for pk in public_keys]
        if sort_keys:
            keys.sort()
        redeem_script = multisig_redeem_script(keys, threshold)

        if utxo.script_pub_key:
            expected = bytes(redeem_script.to_p2sh_scriptPubKey())
            if _hex_bytes(utxo.script_pub_key, "scriptPubKey") != expected:
                raise ArgumentError(
                    f"Public keys for {utxo.txid}:{utxo.vout} do not hash to its scriptPubKey."
                )

        self._inputs.append(
            TxInput(
                txid=_require_txid(utxo.txid),
                vout=int(utxo.vout),
                satoshis=_require_satoshis(utxo.satoshis, "UTXO value"),
                redeem_script=bytes(redeem_script),
                public_keys=tuple(pk.hex() for pk in keys),
                required_signatures=threshold,
            )
        )
        self._update_change_output()
        return self

    # -- outputs ------------------------------------------------------------

    def to(self, address: str, satoshis: int) -> Transaction:
        try:
            script = address_to_scriptpubkey(address)
        except Exception as exc:  # noqa: BLE001
            raise ArgumentError(f"Invalid destination address {address!r}: {exc}") from exc
        return self._append_output(TxOutput(_require_satoshis(satoshis, "Output amount"), script, address))

    def add_output(self, script: str | bytes, satoshis: int) -> Transaction:
        """Add an output paying to a raw scriptPubKey (hex or bytes)."""
        script_bytes = _hex_bytes(script, "Output script")
        return self._append_output(TxOutput(_require_satoshis(satoshis, "Output amount"), script_bytes))

    def _append_output(self, output: TxOutput) -> Transaction:
        self._remove_change_output()
        self._outputs.append(output)
        self._update_change_output()
        return self

    # -- fee and change -----------------------------------------------------

    def set_fee(self, satoshis: int) -> Transaction:
        self._fee = _require_satoshis(satoshis, "Fee")
        self._update_change_output()
        return self

    def set_change_address(self, address: str | DerivedAddress | dict | None) -> Transaction:
        self._change_address = _resolve_address(address)
        self._update_change_output()
        return self

    def _remove_change_output(self) -> None:
        self._outputs = [o for o in self._outputs if not o.is_change]

    def _update_change_output(self) -> None:
        if not self._change_address:
            return
        self._remove_change_output()
        change = self.input_amount - self.output_amount - self._fee
        if change > self.dust_amount:
            try:
                script = address_to_scriptpubkey(self._change_address)
            except Exception as exc:  # noqa: BLE001
                raise ArgumentError(
                    f"Invalid change address {self._change_address!r}: {exc}"
                ) from exc
            self._outputs.append(TxOutput(change, script, self._change_address, is_change=True))

    # -- ordering -----------------------------------------------------------

    def sort_outputs(self, sorting_function: Callable[[list[TxOutput]], list[TxOutput]]) -> Transaction:
        """Reorder outputs. sorting_function must return the same outputs, permuted."""
        reordered = list(sorting_function(list(self._outputs)))
        if len(reordered) != len(self._outputs) or {id(o) for o in reordered} != {
            id(o) for o in self._outputs
        }:
            raise StateError("Output sort must return a permutation of the existing outputs.")
        self._outputs = reordered
        return self

    # -- views --------------------------------------------------------------

    @property
    def inputs(self) -> tuple[TxInput, ...]:
        return tuple(self._inputs)

    @property
    def outputs(self) -> tuple[TxOutput, ...]:
        return tuple(self._outputs)

    @property
    def fee(self) -> int:
        return self._fee

    @property
    def change_address(self) -> str | None:
        return self._change_address

    @property
    def change_output(self) -> TxOutput | None:
        return next((o for o in self._outputs if o.is_change), None)

    @property
    def input_amount(self) -> int:
        return sum(i.satoshis for i in self._inputs)

    @property
    def output_amount(self) -> int:
        return sum(o.satoshis for o in self._outputs)

    # -- serialization ------------------------------------------------------

    def _to_bitcoinlib(self) -> CMutableTransaction:
        txins = [CMutableTxIn(COutPoint(lx(i.txid), i.vout)) for i in self._inputs]
        txouts = [CMutableTxOut(o.satoshis, CScript(o.script)) for o in self._outputs]
        return CMutableTransaction(txins, txouts)

    def serialize(self) -> str:
        """Hex of the unsigned transaction (empty scriptSigs)."""
        return b2x(self._to_bitcoinlib().serialize())

    @property
    def txid(self) -> str:
        return b2lx(self._to_bitcoinlib().GetTxid())

    def to_dict(self) -> dict[str, Any]:
        return {
            "txid": self.txid,
            "inputs": [
                {
                    "txid": i.txid,
                    "vout": i.vout,
                    "satoshis": i.satoshis,
                    "redeemScript": i.redeem_script.hex() if i.redeem_script else None,
                }
                for i in self._inputs
            ],
            "outputs": [
                {"satoshis": o.satoshis, "script": o.script.hex(), "address": o.address}
                for o in self._outputs
            ],
            "fee": self._fee,
            "hex": self.serialize(),
        }


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def _apply_output_order(tx: Transaction, output_order: Sequence[int] | None) -> None:
    count = len(tx.outputs)
    if output_order is None:
        raise StateError(f"Transaction has {count} outputs but the plan has no output order.")

    order = [i for i in output_order if isinstance(i, int) and 0 <= i < count]
    if len(order) != len(output_order):
        logger.debug("Dropped out-of-range output order indexes: %s", output_order)
    if len(order) != count or sorted(order) != list(range(count)):
        raise StateError(
            f"Output order {list(output_order)} is not a permutation of {count} outputs."
        )
    tx.sort_outputs(lambda outputs: [outputs[i] for i in order])


def build_tx(
    plan: TransactionPlan | dict[str, Any],
    config: WalletUtilsConfig | None = None,
) -> Transaction:
    """
    Assemble the unsigned transaction described by plan.

    The returned transaction has been checked independently of the plan's
    own arithmetic: total plan inputs minus total assembled outputs must be
    between 0 and config.max_tx_fee.

    Raises:
        ArgumentError: unknown address type, bad multisig input data or
            malformed amounts and addresses.
        StateError: an output with neither script nor address, a bad
            output order, or an out-of-bounds implied fee.
    """
    if isinstance(plan, dict):
        plan = TransactionPlan.from_dict(plan)
    cfg = config or WalletUtilsConfig.from_env()
    scheme = coerce_scheme(plan.address_type)

    tx = Transaction(dust_amount=cfg.dust_amount)

    if scheme == AddressScheme.MULTISIG:
        for utxo in plan.inputs:
            threshold = (
                utxo.required_signatures
                if utxo.required_signatures is not None
                else plan.required_signatures
            )
            tx.add_multisig_input(utxo, utxo.public_keys, threshold, sort_keys=plan.sort_keys)
    else:
        tx.add_inputs(plan.inputs)

    if plan.to_address and plan.amount is not None and not plan.outputs:
        tx.to(plan.to_address, plan.amount)
    else:
        for index, out in enumerate(plan.outputs):
            if out.script:
                tx.add_output(out.script, out.amount)
            elif out.to_address:
                tx.to(out.to_address, out.amount)
            else:
                raise StateError(f"Output {index} has neither a script nor a destination address.")

    tx.set_fee(plan.fee)
    tx.set_change_address(plan.change_address)

    if len(tx.outputs) > 1:
        _apply_output_order(tx, plan.output_order)

    total_inputs = sum(u.satoshis for u in plan.inputs)
    total_outputs = tx.output_amount
    diff = total_inputs - total_outputs
    if diff < 0:
        raise StateError(
            f"Outputs ({total_outputs} sats) exceed inputs ({total_inputs} sats)."
        )
    if diff > cfg.max_tx_fee:
        raise StateError(
            f"Implied fee {diff} sats exceeds the maximum of {cfg.max_tx_fee} sats."
        )

    logger.debug(
        "Assembled tx: %d inputs, %d outputs, in=%d out=%d fee=%d",
        len(tx.inputs),
        len(tx.outputs),
        total_inputs,
        total_outputs,
        diff,
    )
    return tx
