"""Built-in circuits.

Each function receives the wire class (for constants), the secret input wires
and the clear public inputs, and returns its output wires.
"""

from zkboo.circuits.compiler import compiler

AGE_LIMIT = 19


@compiler.register("age_check", private_inputs=1,
                   description="Private age is greater than 19")
def age_check(wire, inputs, public):
    age, = inputs
    return [age.gt(wire.constant(AGE_LIMIT))]


@compiler.register("threshold", private_inputs=1, public_inputs=1,
                   description="Private value is greater than a public threshold")
def threshold(wire, inputs, public):
    value, = inputs
    return [value.gt(wire.constant(public[0]))]


@compiler.register("sum3", private_inputs=3,
                   description="Sum of three private words modulo 2^32")
def sum3(wire, inputs, public):
    a, b, c = inputs
    return [a.add_op(b).add_op(c)]


@compiler.register("select", private_inputs=3,
                   description="cond ? a : b over private words (cond all-ones or zero)")
def select(wire, inputs, public):
    cond, a, b = inputs
    # Both arms are evaluated; each is masked by its own condition.
    return [cond.if_op(a).xor(cond.negate().if_op(b))]


@compiler.register("masked_xor", private_inputs=2, public_inputs=1,
                   description="(a ^ b) & public mask")
def masked_xor(wire, inputs, public):
    a, b = inputs
    return [a.xor(b).bit_and(wire.constant(public[0]))]


@compiler.register("range_check", private_inputs=1, public_inputs=2, outputs=2,
                   description="lo < value and value < hi, as two flags")
def range_check(wire, inputs, public):
    value, = inputs
    lo, hi = wire.constant(public[0]), wire.constant(public[1])
    return [value.gt(lo), hi.gt(value)]


__all__ = ["age_check", "threshold", "sum3", "select", "masked_xor", "range_check"]
