"""
ngsDiseq.
Main caller.

Estimation of allele frequencies and per-individual disequilibrium
coefficients from sequencing read counts using an ECM algorithm.
"""

# Libraries
import argparse
import os
import sys
from datetime import datetime
from time import time

VERSION = "0.2.1"

# Argparse
parser = argparse.ArgumentParser(prog="ngsdiseq")
parser.add_argument("--version", action="version",
	version=f"v{VERSION}")
parser.add_argument("-n", "--num-ind", metavar="INT", type=int,
	help="Number of individuals")
parser.add_argument("-l", "--num-loci", metavar="INT", type=int,
	help="Number of loci")
parser.add_argument("-p", "--ploidy", metavar="INT", type=int,
	help="Ploidy level of the individuals")
parser.add_argument("-t", "--total-reads", metavar="FILE",
	help="Matrix of total read counts (individuals x loci)")
parser.add_argument("-r", "--ref-reads", metavar="FILE",
	help="Matrix of reference read counts (individuals x loci)")
parser.add_argument("-e", "--error-rates", metavar="FILE",
	help="Vector of sequencing error rates (one per locus)")
parser.add_argument("-o", "--out", "--prefix", metavar="OUTPUT", default="diseq",
	help="Prefix for output files")
parser.add_argument("--tole", "--tol", metavar="FLOAT", type=float, default=1e-5,
	help="Tolerance of the bounded optimizer in the CM-step (1e-5)")
parser.add_argument("--stop", metavar="FLOAT", type=float, default=1e-5,
	help="Parameter change for marking a locus/individual converged (1e-5)")
parser.add_argument("--iter", "--iters", metavar="INT", type=int, default=1000,
	help="Maximum number of iterations - ECM (1000)")
parser.add_argument("--seed", metavar="INT", type=int, default=0,
	help="Random seed for initial parameters (0)")
parser.add_argument("--threads", metavar="INT", type=int, default=1,
	help="Number of threads (1)")
parser.add_argument("-q", "--quiet", action="store_true",
	help="Suppress progress output")
parser.add_argument("--post-save", action="store_true",
	help="Save genotype posteriors")
parser.add_argument("--dosage-save", action="store_true",
	help="Save posterior expected genotype dosages")
parser.add_argument("--loglik-save", action="store_true",
	help="Save per-locus and per-individual log-likelihoods of last CM-step")



##### ngsDiseq #####
def main(argv=None):
	if argv is None:
		argv = sys.argv[1:]
	args = parser.parse_args(argv)
	if len(argv) < 1:
		parser.print_help()
		sys.exit()
	verbose = not args.quiet
	if verbose:
		print("------------------------------------")
		print(f"ngsDiseq v{VERSION}")
		print(f"Using {args.threads} thread(s)")
		print("------------------------------------\n")

	# Check input
	assert args.num_ind is not None and args.num_ind > 0, \
		"Missing or invalid option for -n [--num-ind]!"
	assert args.num_loci is not None and args.num_loci > 0, \
		"Missing or invalid option for -l [--num-loci]!"
	assert args.ploidy is not None and args.ploidy > 0, \
		"Missing or invalid option for -p [--ploidy]!"
	assert args.total_reads is not None, \
		"Missing or invalid option for -t [--total-reads]!"
	assert args.ref_reads is not None, \
		"Missing or invalid option for -r [--ref-reads]!"
	assert args.error_rates is not None, \
		"Missing or invalid option for -e [--error-rates]!"
	assert os.path.isfile(args.total_reads), "Total read count file doesn't exist!"
	assert os.path.isfile(args.ref_reads), "Reference read count file doesn't exist!"
	assert os.path.isfile(args.error_rates), "Error rate file doesn't exist!"
	assert args.tole > 0.0, "Please select a valid tolerance!"
	assert args.stop >= 0.0, "Please select a valid stop threshold!"
	assert args.iter > 0, "Please select a valid number of iterations!"
	assert args.seed >= 0, "Please select a valid random seed!"
	assert args.threads > 0, "Please select a valid number of threads!"
	start = time()

	# Create log-file of arguments
	full = vars(parser.parse_args(argv))
	deaf = vars(parser.parse_args([]))
	with open(args.out + ".log", "w") as log:
		log.write(f"ngsDiseq v{VERSION}\n")
		log.write(f"Time: {datetime.now().strftime('%d/%m/%Y %H:%M:%S')}\n")
		log.write(f"Directory: {os.getcwd()}\n")
		log.write("Options:\n")
		for key in full:
			if full[key] != deaf[key]:
				if type(full[key]) is bool:
					log.write(f"\t--{key}\n")
				else:
					log.write(f"\t--{key} {full[key]}\n")
	del full, deaf

	# Control threads of external numerical libraries
	os.environ["MKL_NUM_THREADS"] = str(args.threads)
	os.environ["MKL_MAX_THREADS"] = str(args.threads)
	os.environ["OMP_NUM_THREADS"] = str(args.threads)
	os.environ["OMP_MAX_THREADS"] = str(args.threads)
	os.environ["NUMEXPR_NUM_THREADS"] = str(args.threads)
	os.environ["NUMEXPR_MAX_THREADS"] = str(args.threads)
	os.environ["OPENBLAS_NUM_THREADS"] = str(args.threads)
	os.environ["OPENBLAS_MAX_THREADS"] = str(args.threads)

	# Numerical libraries
	import numpy as np
	from ngsdiseq import diseq
	from ngsdiseq import shared

	# Parse data
	if verbose:
		print("Parsing read count and error rate files.")
	N, M = args.num_ind, args.num_loci
	T = shared.readCounts(args.total_reads, N, M)
	R = shared.readCounts(args.ref_reads, N, M)
	e = shared.readErrors(args.error_rates, M)
	shared.checkInput(T, R, e)
	if verbose:
		print(f"Loaded {M} loci and {N} individuals (ploidy={args.ploidy}).")

	# Log data info
	with open(args.out + ".log", "a") as log:
		log.write(f"\nLoaded {M} loci and {N} individuals (ploidy={args.ploidy}).\n")

	### ECM algorithm
	if verbose:
		print("\nEstimating allele frequencies and disequilibrium coefficients.")
	rng = np.random.default_rng(args.seed)
	model = diseq.DiseqModel(T, R, e, args.ploidy, tole=args.tole, \
		stop=args.stop, iter=args.iter, rng=rng, threads=args.threads, \
		verbose=verbose)
	status = model.ecm()

	# Save genotypes, frequencies and coefficients
	shared.writeGeno(f"{args.out}-genos.txt", model.callGeno())
	shared.writeVector(f"{args.out}-freqs.txt", model.freqs)
	shared.writeVector(f"{args.out}-F.txt", model.phi)
	if verbose:
		print(f"\nSaved genotype calls as {args.out}-genos.txt")
		print(f"Saved allele frequencies as {args.out}-freqs.txt")
		print(f"Saved disequilibrium coefficients as {args.out}-F.txt\n")

	### Optional saves
	# Genotype posteriors
	if args.post_save:
		np.save(f"{args.out}.post", model.estimatePost())
		if verbose:
			print(f"Saved genotype posteriors as {args.out}.post.npy (Binary)\n")

	# Posterior expectation of the genotypes (dosages)
	if args.dosage_save:
		np.savetxt(f"{args.out}.dosage", model.estimateDosage(), fmt="%.7f", \
			delimiter="\t")
		if verbose:
			print(f"Saved genotype dosages as {args.out}.dosage\n")

	# Diagnostic log-likelihoods of the last CM-step
	if args.loglik_save:
		shared.writeVector(f"{args.out}.loglik.sites", model.perSiteLogLik)
		shared.writeVector(f"{args.out}.loglik.samples", model.perIndLogLik)
		if verbose:
			print(f"Saved per-locus log-likelihoods as {args.out}.loglik.sites")
			print("Saved per-individual log-likelihoods as " + \
				f"{args.out}.loglik.samples\n")

	# Print elapsed time for estimation
	t_tot = time()-start
	t_min = int(t_tot//60)
	t_sec = int(t_tot - t_min*60)
	if verbose:
		print(f"Total elapsed time: {t_min}m{t_sec}s")

	# Write output info to log-file
	with open(args.out + ".log", "a") as log:
		if status is diseq.Status.CONVERGED:
			log.write(f"\nECM converged in {model.iterations} iterations.\n")
		else:
			log.write(f"\nECM did not converge in {model.iterations} iterations!\n")
		log.write(f"Final log-likelihood: {model.logLiks[-1]:.7f}\n")
		log.write(f"Saved genotype calls as {args.out}-genos.txt\n")
		log.write(f"Saved allele frequencies as {args.out}-freqs.txt\n")
		log.write(f"Saved disequilibrium coefficients as {args.out}-F.txt\n")
		if args.post_save:
			log.write(f"Saved genotype posteriors as {args.out}.post.npy (Binary)\n")
		if args.dosage_save:
			log.write(f"Saved genotype dosages as {args.out}.dosage\n")
		if args.loglik_save:
			log.write(f"Saved per-locus log-likelihoods as {args.out}.loglik.sites\n")
			log.write("Saved per-individual log-likelihoods as " + \
				f"{args.out}.loglik.samples\n")
		log.write(f"\nTotal elapsed time: {t_min}m{t_sec}s\n")



##### Define main #####
if __name__ == "__main__":
	main()
